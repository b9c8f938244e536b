"""Layers package initialization."""
from place_scraper.layers.url_resolver import UrlResolver, classify_url, extract_place_id, build_detail_url
from place_scraper.layers.graph_locator import EmbeddedGraphLocator, StatePattern, STATE_PATTERNS
from place_scraper.layers.graph_normalizer import GraphNormalizer
from place_scraper.layers.markup_fallback import MarkupFallbackExtractor
from place_scraper.layers.review_filter import validate_content, deduplicate
from place_scraper.layers.extraction import PlaceExtractionLayer

__all__ = [
    "UrlResolver",
    "classify_url",
    "extract_place_id",
    "build_detail_url",
    "EmbeddedGraphLocator",
    "StatePattern",
    "STATE_PATTERNS",
    "GraphNormalizer",
    "MarkupFallbackExtractor",
    "validate_content",
    "deduplicate",
    "PlaceExtractionLayer",
]
