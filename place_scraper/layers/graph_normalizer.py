"""
Graph Normalizer for the Place Scraper service.

Walks the embedded graph once, picks out the place detail node and a
bounded number of visitor review nodes, and converts them into the
explicit record models. References between nodes are stripped, never
followed.
"""
import math
from typing import Any, Callable, List, Optional, Tuple

from place_scraper.config import config
from place_scraper.models.graph import EmbeddedGraph, GraphNode, NodeKind
from place_scraper.models.place import ExtractionSource, PlaceData, ReviewRecord
from place_scraper.layers.review_filter import validate_content
from place_scraper.utils.logger import LayerLogger


REVIEW_CONTENT_KEYS = ("body", "text", "content", "contents")
REVIEW_DATE_KEYS = ("created", "visited", "date")
REVIEW_LIKE_KEYS = ("likeCount", "votedCount")
MEDIA_URL_KEYS = ("thumbnail", "url", "imageUrl")


def as_text(value: Any) -> Optional[str]:
    """
    Coerce a scalar node value to text.

    Numbers become opaque strings; empty strings, booleans and structured
    values yield None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def as_number(value: Any) -> Optional[float]:
    """Finite number from a numeric or numeric-string value, else None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def as_count(value: Any) -> Optional[int]:
    number = as_number(value)
    return int(number) if number is not None else None


def first_value(fields: Any, keys: Tuple[str, ...], convert: Callable[[Any], Any]) -> Any:
    """First converted value among ``keys`` that is not None."""
    for key in keys:
        value = convert(fields.get(key))
        if value is not None:
            return value
    return None


def first_text(node: GraphNode, keys: Tuple[str, ...]) -> Optional[str]:
    """First key whose value is non-empty text."""
    return first_value(node, keys, as_text)


class GraphNormalizer:
    """Converts an embedded graph into a place record and review candidates."""

    def __init__(self, max_review_candidates: int = config.MAX_REVIEW_CANDIDATES):
        self.max_review_candidates = max_review_candidates
        self.logger = LayerLogger("graph_normalizer")

    def normalize(self, graph: EmbeddedGraph) -> Tuple[Optional[PlaceData], List[ReviewRecord]]:
        """
        Single pass over the graph.

        Returns:
            (place, reviews). ``place`` is None when the graph holds no place
            detail node, in which case ``reviews`` is empty as well.
        """
        place_node: Optional[GraphNode] = None
        reviews: List[ReviewRecord] = []
        candidates_seen = 0
        rejected = 0

        for node in graph:
            if node.kind == NodeKind.PLACE_DETAIL:
                if place_node is None:
                    place_node = node
                else:
                    self.logger.log_decision(
                        decision="ignore_extra_place_node",
                        reason="First place detail node wins",
                        kept=place_node.key,
                        ignored=node.key,
                    )
            elif node.kind == NodeKind.VISITOR_REVIEW:
                if candidates_seen >= self.max_review_candidates:
                    continue
                candidates_seen += 1
                review = self._build_review(node)
                if review is None:
                    rejected += 1
                else:
                    reviews.append(review)

        if place_node is None:
            self.logger.log_action(
                "normalize_graph",
                "no_data_found",
                pattern=graph.pattern,
                node_count=len(graph),
                typenames=graph.typename_counts(),
            )
            return None, []

        place = self._build_place(place_node)
        self.logger.log_action(
            "normalize_graph",
            "completed",
            pattern=graph.pattern,
            place_key=place_node.key,
            review_candidates=candidates_seen,
            reviews_rejected=rejected,
        )
        return place, reviews

    def _build_place(self, node: GraphNode) -> PlaceData:
        return PlaceData(
            site_id=as_text(node.get("id")) or node.key_suffix,
            category=as_text(node.get("category")),
            road_address=as_text(node.get("roadAddress")),
            address=as_text(node.get("address")),
            title=first_text(node, ("name", "displayName")),
            description=as_text(node.get("description")),
            phone=as_text(node.get("phone")),
            virtual_phone=as_text(node.get("virtualPhone")),
            source=ExtractionSource.EMBEDDED_GRAPH,
        )

    def _build_review(self, node: GraphNode) -> Optional[ReviewRecord]:
        """Review record, or None when the node has no usable text."""
        content = self._content(node)
        if not validate_content(content):
            return None

        return ReviewRecord(
            id=as_text(node.get("id")) or node.key_suffix,
            author=self._author(node),
            rating=as_number(node.get("rating")),
            content=content,
            date=first_text(node, REVIEW_DATE_KEYS),
            image_urls=self._image_urls(node),
            has_owner_reply=self._has_owner_reply(node),
            like_count=first_value(node, REVIEW_LIKE_KEYS, as_count),
        )

    def _content(self, node: GraphNode) -> Optional[str]:
        """First non-blank review text, kept as written."""
        for key in REVIEW_CONTENT_KEYS:
            value = node.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None

    def _author(self, node: GraphNode) -> Optional[str]:
        author = node.get("author")
        if isinstance(author, dict):
            return as_text(author.get("nickname")) or as_text(author.get("name"))
        return as_text(author)

    def _image_urls(self, node: GraphNode) -> List[str]:
        urls = []
        media = node.get("media")
        if isinstance(media, list):
            for item in media:
                if isinstance(item, dict):
                    url = first_value(item, MEDIA_URL_KEYS, as_text)
                else:
                    url = as_text(item)
                if url:
                    urls.append(url)
        images = node.get("images")
        if isinstance(images, list):
            urls.extend(url for url in (as_text(item) for item in images) if url)
        return urls

    def _has_owner_reply(self, node: GraphNode) -> Optional[bool]:
        if "reply" not in node.fields:
            return None
        raw = node.fields["reply"]
        reply = node.get("reply")
        if raw is not None and reply is None:
            # reply lives in another node; unresolved
            return None
        if isinstance(reply, dict):
            return bool(as_text(reply.get("body")) or as_text(reply.get("content")))
        return bool(reply)
