"""
DevCamper Backend - API Schemas
=================================

Pydantic models for request bodies and response envelopes. Kept apart from
the ORM models so the API contract can differ from the table layout.
"""
