"""HTML extraction for listing and detail pages."""
from __future__ import annotations

from typing import Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .models import AttachmentLink, ListingItem
from .sources import LISTING_DETAIL_AND_PDF, KindRule, SourceProfile


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html5lib")


def _absolute_href(anchor, base_url: str) -> Optional[str]:
    href = (anchor.get("href") or "").strip()
    if not href:
        return None
    return urljoin(base_url, href)


def classify_link_text(text: str, rules: Iterable[KindRule], default: str) -> str:
    """Return the file kind of the first rule whose pattern occurs in *text*."""

    lowered = (text or "").lower()
    for rule in rules:
        if rule.pattern.lower() in lowered:
            return rule.kind
    return default


def extract_listing(html: str, profile: SourceProfile, base_url: str) -> List[ListingItem]:
    """Return the documents listed on one listing page, in page order."""

    soup = _soup(html)
    items: List[ListingItem] = []

    if profile.listing_kind == LISTING_DETAIL_AND_PDF:
        # Each block holds the detail link first and the PDF link third.
        for block in soup.select(profile.listing_item_selector):
            anchors = block.find_all("a")
            detail_url = _absolute_href(anchors[0], base_url) if len(anchors) > 0 else None
            pdf_url = _absolute_href(anchors[2], base_url) if len(anchors) > 2 else None
            if detail_url and pdf_url:
                items.append(
                    ListingItem(
                        title=anchors[0].get_text().strip(),
                        detail_url=detail_url,
                        pdf_url=pdf_url,
                    )
                )
        return items

    for anchor in soup.select(profile.listing_item_selector):
        detail_url = _absolute_href(anchor, base_url)
        if not detail_url:
            continue
        items.append(ListingItem(title=anchor.get_text().strip(), detail_url=detail_url))
    return items


def extract_attachment_links(
    html: str, profile: SourceProfile, base_url: str
) -> List[AttachmentLink]:
    """Return the first link of every documents-table row on a detail page."""

    if not profile.attachment_row_selector:
        return []

    links: List[AttachmentLink] = []
    for row in _soup(html).select(profile.attachment_row_selector):
        anchor = row.find("a")
        if anchor is None:
            continue
        href = _absolute_href(anchor, base_url)
        if not href:
            continue
        text = anchor.get_text().strip()
        links.append(
            AttachmentLink(
                text=text,
                href=href,
                kind=classify_link_text(text, profile.kind_rules, profile.default_kind),
            )
        )
    return links


def extract_export_pdf_link(html: str, profile: SourceProfile, base_url: str) -> Optional[str]:
    if not profile.export_pdf_selector:
        return None
    anchor = _soup(html).select_one(profile.export_pdf_selector)
    if anchor is None:
        return None
    return _absolute_href(anchor, base_url)


__all__ = [
    "classify_link_text",
    "extract_listing",
    "extract_attachment_links",
    "extract_export_pdf_link",
]
