"""
API Schemas Package

Contains shared Pydantic models for API Layer.
"""

from nad_uploader.api.schemas.common import ErrorResponse

__all__ = ["ErrorResponse"]
