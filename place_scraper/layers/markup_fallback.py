"""
Fallback Markup Extractor for the Place Scraper service.
Used when the page carries no usable embedded state graph.

Every field is recovered by an ordered tuple of independent attempts;
the first attempt that returns a non-empty value wins.
"""
import json
import re
from typing import Callable, Optional, Tuple

from bs4 import BeautifulSoup

from place_scraper.models.place import ExtractionSource, PlaceData, RawDocument
from place_scraper.layers.url_resolver import extract_place_id
from place_scraper.utils.logger import LayerLogger


Attempt = Callable[[BeautifulSoup, str], Optional[str]]

# " - Any Site" at the end of a title; " | " and " : " only before a known brand
_SITE_BRANDS = r"(?:네이버|naver)(?:\s*(?:지도|플레이스|map|place|블로그|blog))?"
_BRANDING_SUFFIX = re.compile(
    r"\s+(?:-\s+[^-|:]+|[|:]\s+%s)\s*$" % _SITE_BRANDS,
    re.I,
)

_LABEL_END = r"(?:\s*[:：]\s*|\s+|$)"
_ADDRESS_LABEL = re.compile(r"^\s*(?:주소|Address)%s(.*)$" % _LABEL_END, re.I | re.S)
_PHONE_LABEL = re.compile(r"^\s*(?:전화번호|전화|Tel|Phone)%s(.*)$" % _LABEL_END, re.I | re.S)
_PHONE_VALUE = re.compile(r"^\+?\d[\d\s().\-]{6,}$")
_PHONE_SHAPE = re.compile(r"(?<!\d)(0\d{1,3}-\d{3,4}-\d{4}|1\d{3}-\d{4})(?!\d)")
_RESTAURANT_ID = re.compile(r"restaurant/(\d+)")


def _json_string_literal(key: str) -> "re.Pattern[str]":
    return re.compile(r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(key))


_ROAD_ADDRESS_LITERAL = _json_string_literal("roadAddress")
_ADDRESS_LITERAL = _json_string_literal("address")
_PHONE_LITERAL = _json_string_literal("phone")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = " ".join(value.split())
    return value or None


def _unescape_literal(raw: str) -> Optional[str]:
    try:
        return _clean(json.loads(f'"{raw}"'))
    except json.JSONDecodeError:
        return _clean(raw)


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return _clean(tag["content"])
    return None


def strip_branding(title: str) -> str:
    """Remove a trailing site-branding suffix from a page title."""
    stripped = _BRANDING_SUFFIX.sub("", title).strip()
    return stripped or title


# -- title -------------------------------------------------------------------

def _title_tag(soup: BeautifulSoup, html: str) -> Optional[str]:
    tag = soup.find("title")
    return _clean(tag.get_text()) if tag else None


def _first_heading(soup: BeautifulSoup, html: str) -> Optional[str]:
    tag = soup.find("h1")
    return _clean(tag.get_text(" ")) if tag else None


def _og_title(soup: BeautifulSoup, html: str) -> Optional[str]:
    return _meta_content(soup, property="og:title")


# -- description -------------------------------------------------------------

def _meta_description(soup: BeautifulSoup, html: str) -> Optional[str]:
    return _meta_content(soup, name="description")


def _og_description(soup: BeautifulSoup, html: str) -> Optional[str]:
    return _meta_content(soup, property="og:description")


def _labeled_value(
    soup: BeautifulSoup,
    label: "re.Pattern[str]",
    accept: Callable[[str], bool] = bool,
) -> Optional[str]:
    """
    Value next to a text label, either in the same text node
    ("주소: ...") or in the label element's next sibling.
    """
    for text in soup.find_all(string=label):
        parent = text.parent
        if parent is not None and parent.name in ("script", "style"):
            continue
        value = _clean(label.search(text).group(1))
        if not value and parent is not None:
            sibling = parent.find_next_sibling()
            value = _clean(sibling.get_text(" ")) if sibling else None
        if value and accept(value):
            return value
    return None


# -- address -----------------------------------------------------------------

def _labeled_address(soup: BeautifulSoup, html: str) -> Optional[str]:
    return _labeled_value(soup, _ADDRESS_LABEL)


def _address_attribute(soup: BeautifulSoup, html: str) -> Optional[str]:
    tag = soup.find(attrs={"data-address": True})
    if tag:
        return _clean(tag["data-address"])
    tag = soup.find(attrs={"itemprop": "address"}) or soup.find("address")
    if tag:
        return _clean(tag.get_text(" "))
    tag = soup.find(class_=re.compile(r"address", re.I))
    if tag:
        return _clean(tag.get_text(" "))
    return None


def _address_literal(soup: BeautifulSoup, html: str) -> Optional[str]:
    for pattern in (_ROAD_ADDRESS_LITERAL, _ADDRESS_LITERAL):
        match = pattern.search(html)
        if match:
            value = _unescape_literal(match.group(1))
            if value:
                return value
    return None


# -- phone -------------------------------------------------------------------

def _labeled_phone(soup: BeautifulSoup, html: str) -> Optional[str]:
    return _labeled_value(soup, _PHONE_LABEL, accept=lambda value: bool(_PHONE_VALUE.match(value)))


def _tel_link(soup: BeautifulSoup, html: str) -> Optional[str]:
    tag = soup.find("a", href=re.compile(r"^tel:", re.I))
    if tag:
        return _clean(tag["href"].split(":", 1)[1])
    return None


def _phone_literal(soup: BeautifulSoup, html: str) -> Optional[str]:
    match = _PHONE_LITERAL.search(html)
    return _unescape_literal(match.group(1)) if match else None


def _phone_shape(soup: BeautifulSoup, html: str) -> Optional[str]:
    match = _PHONE_SHAPE.search(soup.get_text(" "))
    return match.group(1) if match else None


# -- identifier --------------------------------------------------------------

def _restaurant_path(soup: BeautifulSoup, html: str) -> Optional[str]:
    match = _RESTAURANT_ID.search(html)
    return match.group(1) if match else None


def _canonical_link(soup: BeautifulSoup, html: str) -> Optional[str]:
    link = soup.find("link", rel="canonical")
    candidates = [link.get("href") if link else None, _meta_content(soup, property="og:url")]
    for candidate in candidates:
        if candidate:
            place_id = extract_place_id(candidate)
            if place_id:
                return place_id
    return None


TITLE_ATTEMPTS: Tuple[Attempt, ...] = (_title_tag, _first_heading, _og_title)
DESCRIPTION_ATTEMPTS: Tuple[Attempt, ...] = (_meta_description, _og_description)
ADDRESS_ATTEMPTS: Tuple[Attempt, ...] = (_labeled_address, _address_attribute, _address_literal)
PHONE_ATTEMPTS: Tuple[Attempt, ...] = (_labeled_phone, _tel_link, _phone_literal, _phone_shape)
ID_ATTEMPTS: Tuple[Attempt, ...] = (_restaurant_path, _canonical_link)


def first_success(attempts: Tuple[Attempt, ...], soup: BeautifulSoup, html: str) -> Optional[str]:
    """Run attempts in order and return the first non-empty result."""
    for attempt in attempts:
        value = attempt(soup, html)
        if value:
            return value
    return None


class MarkupFallbackExtractor:
    """Recovers a minimal place record directly from page markup."""

    def __init__(self):
        self.logger = LayerLogger("markup_fallback")

    def extract(self, document: RawDocument) -> Optional[PlaceData]:
        """
        Extract a place record from markup.

        Returns None unless at least a title or an identifier was found.
        """
        html = document.text
        soup = BeautifulSoup(html, "lxml")

        title = first_success(TITLE_ATTEMPTS, soup, html)
        site_id = first_success(ID_ATTEMPTS, soup, html)

        if not title and not site_id:
            self.logger.log_action(
                "markup_extraction",
                "no_data_found",
                url=document.url,
                reason="Neither title nor place id present in markup",
                content_length=len(html),
            )
            return None

        place = PlaceData(
            site_id=site_id,
            title=strip_branding(title) if title else None,
            description=first_success(DESCRIPTION_ATTEMPTS, soup, html),
            address=first_success(ADDRESS_ATTEMPTS, soup, html),
            phone=first_success(PHONE_ATTEMPTS, soup, html),
            source=ExtractionSource.MARKUP_FALLBACK,
        )
        self.logger.log_extraction(
            source=ExtractionSource.MARKUP_FALLBACK.value,
            fields_present=place.present_fields(),
            fields_missing=place.missing_fields(),
            review_count=0,
            url=document.url,
        )
        return place
