"""
DevCamper Backend - Services Layer
====================================

Data access and side effects, called by the thin route handlers.

Service Inventory:
    - BootcampService: bootcamp CRUD, radius search, photo/video uploads
    - CourseService:   course CRUD and the bootcamp average_cost rollup
    - GeocoderService: MapQuest address/zipcode lookup (httpx + tenacity)
    - FileService:     upload validation and storage (aiofiles)
    - query_builder:   list-endpoint filter/select/sort/pagination
"""
