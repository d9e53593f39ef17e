"""
FastAPI Application Module

Provides the REST API for the knowledge-base chat proxy.
"""

from .main import app

__all__ = ["app"]
