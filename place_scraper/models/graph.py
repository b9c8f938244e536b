"""
Embedded state graph model.

The detail page ships its client cache as a flat mapping from node key
(``"PlaceDetailBase:123"``) to node object. Nodes point at each other with
reference markers instead of nesting. The graph is kept as that flat arena;
references are recognised but never followed.
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional


TYPENAME_KEY = "__typename"
REF_KEY = "__ref"


class NodeKind(str, Enum):
    """Node kinds the normalizer distinguishes. Everything else is inert."""
    PLACE_DETAIL = "PlaceDetailBase"
    VISITOR_REVIEW = "VisitorReview"
    OTHER = "other"

    @classmethod
    def from_typename(cls, typename: Optional[str]) -> "NodeKind":
        for kind in (cls.PLACE_DETAIL, cls.VISITOR_REVIEW):
            if typename == kind.value:
                return kind
        return cls.OTHER


def is_reference(value: Any) -> bool:
    """True for a marker pointing at another node rather than an inline value."""
    if not isinstance(value, dict):
        return False
    if REF_KEY in value and len(value) == 1:
        return True
    # Apollo 2 cache format
    return value.get("type") == "id" and "id" in value and "generated" in value


def strip_references(value: Any) -> Any:
    """
    Return ``value`` with every reference marker removed.

    A top-level reference becomes None; references inside objects drop their
    key and references inside arrays drop their item.
    """
    if is_reference(value):
        return None
    if isinstance(value, dict):
        return {
            key: strip_references(item)
            for key, item in value.items()
            if not is_reference(item)
        }
    if isinstance(value, list):
        return [strip_references(item) for item in value if not is_reference(item)]
    return value


@dataclass(frozen=True)
class GraphNode:
    """One entry of the graph, tagged with its kind."""
    key: str
    kind: NodeKind
    fields: Dict[str, Any]

    @classmethod
    def from_entry(cls, key: str, value: Any) -> "GraphNode":
        if not isinstance(value, dict):
            return cls(key=key, kind=NodeKind.OTHER, fields={})
        return cls(key=key, kind=NodeKind.from_typename(node_typename(key, value)), fields=value)

    @property
    def key_suffix(self) -> Optional[str]:
        """Identifier part of ``Type:identifier`` keys."""
        _, sep, suffix = self.key.partition(":")
        if not sep or not suffix:
            return None
        return suffix

    def get(self, name: str) -> Any:
        """Field value with references stripped."""
        return strip_references(self.fields.get(name))


def node_typename(key: str, value: Dict[str, Any]) -> Optional[str]:
    """Explicit ``__typename``, else the key prefix before the first colon."""
    typename = value.get(TYPENAME_KEY)
    if isinstance(typename, str) and typename:
        return typename
    prefix, sep, _ = key.partition(":")
    return prefix if sep else None


@dataclass
class EmbeddedGraph:
    """Flat key -> node mapping located in a page."""
    nodes: Dict[str, Any]
    pattern: str = field(default="")

    def __iter__(self) -> Iterator[GraphNode]:
        for key, value in self.nodes.items():
            yield GraphNode.from_entry(key, value)

    def __len__(self) -> int:
        return len(self.nodes)

    def typename_counts(self) -> Dict[str, int]:
        """Histogram of node type names, used to diagnose markup drift."""
        counts = Counter(
            (node_typename(key, value) or "<untyped>") if isinstance(value, dict) else "<non-object>"
            for key, value in self.nodes.items()
        )
        return dict(counts.most_common(20))
