"""
asgi.py -- ASGI entry point for VerifyTrack.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Kept separate from api/main.py so process managers point at a stable
top-level module regardless of how the api/ package is organised.
"""

from api.main import app

__all__ = ["app"]
