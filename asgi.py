"""
asgi.py -- Process entry point for the socialauth API.

Builds the app from the environment at import time, so a missing
JWT_SECRET_KEY stops the server before it binds a port.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app

app = create_app()
