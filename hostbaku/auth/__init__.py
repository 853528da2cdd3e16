"""Token authentication and role decorators."""
