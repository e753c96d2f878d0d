from app.client.api_client import ApiError, ExportDownload, GymScheduleClient
from app.client.detail_view import BookingDetailView, DetailFetchGuard

__all__ = [
    "ApiError",
    "ExportDownload",
    "GymScheduleClient",
    "BookingDetailView",
    "DetailFetchGuard",
]
