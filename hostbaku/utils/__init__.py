"""Utility helpers for the web layer."""
