"""
Place Extraction Layer for the Place Scraper service.
Runs the whole pipeline for one input URL:

    resolve -> fetch -> locate graph -> normalize -> (markup fallback) -> dedupe

Missing or unusable embedded data is recovered here by falling back to
markup extraction. Only resolver, fetch and total extraction failures
leave this layer, and only as taxonomy errors.
"""
from typing import Optional, Union

import httpx

from place_scraper.config import config
from place_scraper.errors import NoEmbeddedDataError, NoRecordError, PlaceScraperError
from place_scraper.models.place import (
    FailureEnvelope,
    PlaceData,
    PlaceEnvelope,
    RawDocument,
)
from place_scraper.adapters.page_fetcher import PageFetcher
from place_scraper.layers.graph_locator import EmbeddedGraphLocator
from place_scraper.layers.graph_normalizer import GraphNormalizer
from place_scraper.layers.markup_fallback import MarkupFallbackExtractor
from place_scraper.layers.review_filter import deduplicate
from place_scraper.layers.url_resolver import UrlResolver
from place_scraper.utils.logger import LayerLogger


class PlaceExtractionLayer:
    """
    Pipeline entry point.

    Holds no per-request state; every run allocates its own document,
    graph and record, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        timeout: float = config.REQUEST_TIMEOUT,
        max_review_candidates: int = config.MAX_REVIEW_CANDIDATES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.logger = LayerLogger("place_extraction")
        self.resolver = UrlResolver(timeout=timeout, transport=transport)
        self.fetcher = PageFetcher(timeout=timeout, transport=transport)
        self.locator = EmbeddedGraphLocator()
        self.normalizer = GraphNormalizer(max_review_candidates=max_review_candidates)
        self.fallback = MarkupFallbackExtractor()

    async def run(self, url: str) -> Union[PlaceEnvelope, FailureEnvelope]:
        """
        Run the pipeline and wrap the outcome in a caller-facing envelope.

        Never raises: taxonomy errors become failure envelopes, anything
        else is logged and reported as a failed extraction.
        """
        try:
            place = await self.extract(url)
        except PlaceScraperError as e:
            self.logger.log_error(
                e.message,
                error_type=e.error_kind,
                url=url,
                status=getattr(e, "status", None),
            )
            return FailureEnvelope(error_kind=e.error_kind, message=e.message, http_status=e.http_status)
        except Exception as e:  # noqa: BLE001
            self.logger.log_error(
                f"Unexpected pipeline failure: {str(e)}",
                error_type=type(e).__name__,
                exc_info=True,
                url=url,
            )
            error = NoRecordError("Place data could not be extracted", url=url)
            return FailureEnvelope(error_kind=error.error_kind, message=error.message, http_status=error.http_status)

        return PlaceEnvelope(original_url=url, place_data=place)

    async def extract(self, url: str) -> PlaceData:
        """
        Extract a place record for ``url``.

        Raises:
            InvalidUrlError, RedirectResolutionError: nothing to fetch.
            NetworkError, FetchError: the page could not be downloaded.
            NoRecordError: neither the embedded graph nor the markup gave a record.
        """
        self.logger.log_action("place_extraction", "started", url=url)

        resolved = await self.resolver.resolve(url)
        document = await self.fetcher.fetch(resolved)

        try:
            place = self._extract_from_graph(document)
        except NoEmbeddedDataError as e:
            self.logger.log_fallback(
                from_source="embedded_graph",
                to_source="markup",
                reason=e.message,
                url=document.url,
            )
            place = self.fallback.extract(document)

        if place is None:
            raise NoRecordError("Place data could not be extracted from the page", url=document.url)

        self.logger.log_action(
            "place_extraction",
            "completed",
            url=url,
            source=place.source.value,
            site_id=place.site_id,
            review_count=len(place.reviews),
        )
        return place

    def _extract_from_graph(self, document: RawDocument) -> PlaceData:
        graph = self.locator.locate(document)
        if graph is None:
            raise NoEmbeddedDataError("No embedded state graph in page", url=document.url)

        try:
            place, reviews = self.normalizer.normalize(graph)
        except (TypeError, ValueError, AttributeError, OverflowError) as e:
            # node shapes drifted away from what the normalizer reads
            self.logger.log_error(
                f"Graph normalization failed: {str(e)}",
                error_type="graph_shape_error",
                exc_info=True,
                url=document.url,
                pattern=graph.pattern,
                typenames=graph.typename_counts(),
            )
            raise NoEmbeddedDataError("Embedded state graph has an unexpected shape", url=document.url) from e

        if place is None:
            raise NoEmbeddedDataError("Embedded state graph has no place detail node", url=document.url)

        place = place.model_copy(update={"reviews": deduplicate(reviews)})
        self.logger.log_extraction(
            source=place.source.value,
            fields_present=place.present_fields(),
            fields_missing=place.missing_fields(),
            review_count=len(place.reviews),
            url=document.url,
            pattern=graph.pattern,
        )
        return place
