"""ASGI entry point (``uvicorn alpinebridge.api.app:app``)."""

from .factory import create_app

app = create_app()
