"""
asgi.py -- ASGI entry point for CyberCalendar.

The calendar frontend is a separate static app that talks to this API over
HTTP; nothing UI-related is mounted here.

Run with:  uvicorn asgi:app --reload
           uvicorn asgi:app --host 0.0.0.0 --port 5000   (production, behind TLS)
"""

from api.main import app

__all__ = ["app"]
