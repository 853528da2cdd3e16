"""
WSGI entry point for Gunicorn.
Run with: gunicorn --workers 4 --bind 127.0.0.1:5000 wsgi:app
"""

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

# Import and create app
from hostbaku.app import create_app

# Create the application
app = create_app()

if __name__ == '__main__':
    app.run()
