"""
HTTP API for transaction decoding and fee estimation.
"""
from .app import app, create_app

__all__ = ['app', 'create_app']
