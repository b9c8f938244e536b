"""Adapters package initialization."""
from place_scraper.adapters.page_fetcher import PageFetcher

__all__ = ["PageFetcher"]
