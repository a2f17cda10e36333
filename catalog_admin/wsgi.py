"""WSGI entry point, e.g. ``gunicorn catalog_admin.wsgi:app``."""
from .app import create_app

app = create_app()
