"""
DevCamper Backend - Middleware Package
========================================

Request chain (outermost first):
    [Request ID] → [Request logging, development only] → [CORS] → route

Route-level errors are caught by EnvelopeRoute (async_handler.py) and
rendered by error_handler.py; the same renderer backs the app-level
exception handlers.
"""
