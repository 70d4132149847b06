"""Service layer for business logic."""

from src.services.vdf_result_cache import VDFResultCache
from src.services.vdf_service import VDFService, format_status

__all__ = [
    "VDFResultCache",
    "VDFService",
    "format_status",
]
