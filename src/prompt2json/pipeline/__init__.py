"""Pipeline stages: request/response transport and result validation."""

from .api_handler import GenerateContentClient, build_request, endpoint_url, extract_text
from .result_builder import ResultBuilder, format_json

__all__ = [
    "GenerateContentClient",
    "ResultBuilder",
    "build_request",
    "endpoint_url",
    "extract_text",
    "format_json",
]
