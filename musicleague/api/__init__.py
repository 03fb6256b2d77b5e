"""
Music League Engine - API Module

Response envelope and the read-only league routes.
"""

from .response import ApiResponse, ResponseMeta, api_response, degraded_response, error_response

__all__ = [
    "ApiResponse",
    "ResponseMeta",
    "api_response",
    "degraded_response",
    "error_response",
]
