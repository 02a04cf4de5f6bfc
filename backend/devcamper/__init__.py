"""
DevCamper Backend - Application Package
=========================================

REST API for a directory of coding bootcamps and their courses.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes (routes/)                  │  HTTP only: parse, call, envelope
    ├─────────────────────────────────────┤
    │   Services (services/)              │  data access, geocoding, uploads
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (database.py)            │  async engine and sessions
    └─────────────────────────────────────┘

Errors raised anywhere below the routes are translated in exactly one place,
middleware/error_handler.py.
"""

__version__ = "1.0.0"
