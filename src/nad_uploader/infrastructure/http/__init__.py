"""HTTP Infrastructure - NAD API client."""

from nad_uploader.infrastructure.http.nad_client import NadApiClient

__all__ = ["NadApiClient"]
