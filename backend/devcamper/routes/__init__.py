"""
DevCamper Backend - API Routes Package
========================================

Route modules:
    bootcamps.py  /api/v1/bootcamps/...  (also mounts the nested course routes)
    courses.py    /api/v1/courses/...
    health.py     /health

Handlers stay thin: read the request, call a service, wrap the result in the
success envelope. Business rules live in services/.
"""

from devcamper.routes import bootcamps, courses, health

API_ROUTERS = (bootcamps.router, courses.router, health.router)
