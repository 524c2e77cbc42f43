"""Article enrichment using an LLM."""

from .interfaces import (
    CATEGORIES, RELIABILITY_LEVELS,
    EnrichmentResult, EnrichmentStatus, EnricherInterface
)
from .analyzer import ArticleAnalyzer, extract_json_object, parse_response
from .llm_client import LLMClient

__all__ = [
    "CATEGORIES", "RELIABILITY_LEVELS",
    "EnrichmentResult", "EnrichmentStatus", "EnricherInterface",
    "ArticleAnalyzer", "extract_json_object", "parse_response", "LLMClient"
]
