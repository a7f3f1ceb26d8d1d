"""
Routers Package
===============

Two routers, one per side of the app:

- upload_router: /upload/outdoor and /upload/indoor, where the ESP nodes post
- data_router: /data/latest and /data/history, what the dashboard polls
"""

from .upload import router as upload_router, get_ingestion_service
from .data import router as data_router, get_view_aggregator

__all__ = [
    "upload_router",
    "data_router",
    "get_ingestion_service",
    "get_view_aggregator",
]
