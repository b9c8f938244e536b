"""
Embedded-Graph Locator for the Place Scraper service.

Finds the client-state blob that the page's rendering framework assigns to
a ``window`` global and parses it as JSON. Patterns are tried in priority
order and the first one that both matches and parses wins.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from place_scraper.models.graph import EmbeddedGraph
from place_scraper.models.place import RawDocument
from place_scraper.utils.logger import LayerLogger


# NaN and Infinity literals decode to None
_decoder = json.JSONDecoder(parse_constant=lambda constant: None)


@dataclass(frozen=True)
class StatePattern:
    """One ``window.<name> = {...}`` embedding convention."""
    name: str
    regex: "re.Pattern[str]"

    def find(self, html: str) -> Optional[int]:
        """Offset of the opening brace of the assigned value, if present."""
        match = self.regex.search(html)
        if not match:
            return None
        return match.end() - 1

    def parse(self, html: str, start: int) -> Any:
        """
        Decode the JSON value starting at ``start``.

        The decoder stops at the end of the first complete value, so text
        after the literal (or a ``};`` inside a string) does not matter.
        """
        value, _ = _decoder.raw_decode(html, start)
        return value


def _assignment(variable: str) -> "re.Pattern[str]":
    return re.compile(r"window\.%s\s*=\s*\{" % re.escape(variable))


STATE_PATTERNS: Tuple[StatePattern, ...] = (
    StatePattern("apollo_state", _assignment("__APOLLO_STATE__")),
    StatePattern("place_state", _assignment("__PLACE_STATE__")),
    StatePattern("initial_state", _assignment("__INITIAL_STATE__")),
    StatePattern("preloaded_state", _assignment("__PRELOADED_STATE__")),
)


class EmbeddedGraphLocator:
    """Locates and parses the embedded state graph of a detail page."""

    def __init__(self, patterns: Tuple[StatePattern, ...] = STATE_PATTERNS):
        self.patterns = patterns
        self.logger = LayerLogger("graph_locator")

    def locate(self, document: RawDocument) -> Optional[EmbeddedGraph]:
        """
        Return the first embedded graph that matches and parses.

        Absence is an expected outcome, not an error: the caller falls back
        to markup extraction when None comes back.
        """
        html = document.text
        for pattern in self.patterns:
            nodes = self._attempt(pattern, html, document.url)
            if nodes is not None:
                self.logger.log_action(
                    "locate_graph",
                    "completed",
                    url=document.url,
                    pattern=pattern.name,
                    node_count=len(nodes),
                )
                return EmbeddedGraph(nodes=nodes, pattern=pattern.name)

        self.logger.log_action(
            "locate_graph",
            "no_data_found",
            url=document.url,
            patterns_tried=[p.name for p in self.patterns],
            content_length=len(html),
        )
        return None

    def _attempt(self, pattern: StatePattern, html: str, url: str) -> Optional[Dict[str, Any]]:
        start = pattern.find(html)
        if start is None:
            return None

        try:
            value = pattern.parse(html, start)
        except json.JSONDecodeError as e:
            self.logger.log_error(
                f"Embedded state did not parse: {e.msg}",
                error_type="state_parse_error",
                url=url,
                pattern=pattern.name,
                position=e.pos,
                context=html[max(e.pos - 40, 0):e.pos + 40],
            )
            return None

        # Patterns anchor on the opening brace, so a decoded value is an object
        return value
