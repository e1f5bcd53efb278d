"""Secondary record sections: room layouts, photo carousel, data label, sources."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional

import httpx

from factsheet.ipld.kinds import ClassifiedDocuments, DocumentKind
from factsheet.ipld.normalize import build_source_url, parse_request_string
from factsheet.ipld.record import CarouselImage, DataSource, LayoutSummary
from factsheet.ipld.store import Document

logger = logging.getLogger(__name__)

LABEL_PRIORITY = ("Photo Metadata", "Photo", "County", "Seed")
PHOTO_FORMATS = {"jpg", "jpeg", "png"}
PROPERTY_IMAGE = "PropertyImage"

# Bookkeeping fields that never belong on a rendered layout card
_LAYOUT_SKIP_FIELDS = {"source_http_request", "request_identifier"}
_FIRST_NUMBER_RE = re.compile(r"\d+")

Graph = Mapping[str, Dict[str, str]]


def linked_targets(graph: Graph, doc_id: str, field: str) -> List[str]:
    """Target ids linked from ``field`` of doc_id (a single link or a list)."""
    out = []
    for path, target in graph.get(doc_id, {}).items():
        if path == field or path.startswith(field + "["):
            out.append(target)
    return out


def _relationship_target(
    rel_id: str,
    classified: ClassifiedDocuments,
    graph: Graph,
) -> Optional[Document]:
    if classified.kind_of(rel_id) is not DocumentKind.RELATIONSHIP:
        return None
    target_id = graph.get(rel_id, {}).get("to")
    return classified.documents.get(target_id) if target_id else None


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------

def layouts_by_group(classified: ClassifiedDocuments, graph: Graph) -> Dict[str, List[Document]]:
    """Layout documents reached from each data group's property_has_layout links."""
    groups: Dict[str, List[Document]] = {}
    for group in classified.of_kind(DocumentKind.DATA_GROUP):
        label = str(group.get("label") or "")
        for rel_id in linked_targets(graph, group.id, "relationships.property_has_layout"):
            layout = _relationship_target(rel_id, classified, graph)
            if layout is None or classified.kind_of(layout.id) is not DocumentKind.LAYOUT:
                logger.debug("Layout relationship %s did not resolve to a layout", rel_id)
                continue
            groups.setdefault(label, []).append(layout)
    return groups


def select_layouts(classified: ClassifiedDocuments, graph: Graph) -> List[Document]:
    """Pick the layout set to show.

    One contributing data group: use it. Several: prefer "Photo Metadata",
    else the largest. No data group links: every layout document.
    """
    groups = layouts_by_group(classified, graph)
    if not groups:
        return classified.of_kind(DocumentKind.LAYOUT)
    if len(groups) == 1:
        return next(iter(groups.values()))
    if "Photo Metadata" in groups:
        return groups["Photo Metadata"]
    label = max(groups, key=lambda k: len(groups[k]))
    logger.debug("Using largest layout group %r of %s", label, list(groups))
    return groups[label]


def _layout_card(layout: Document) -> Dict:
    return {
        k: v for k, v in layout.content.items()
        if v is not None and k not in _LAYOUT_SKIP_FIELDS
    }


def summarize_layouts(layouts: List[Document]) -> LayoutSummary:
    """Split layouts by floor, each floor sorted by space type."""
    summary = LayoutSummary()
    ordered = sorted(layouts, key=lambda d: str(d.get("space_type") or ""))
    for layout in ordered:
        floor = layout.get("floor_level")
        card = _layout_card(layout)
        if floor == "1st Floor":
            summary.first_floor.append(card)
        elif floor == "2nd Floor":
            summary.second_floor.append(card)
        else:
            summary.other.append(card)
    return summary


# ---------------------------------------------------------------------------
# Carousel images
# ---------------------------------------------------------------------------

def _image(doc: Optional[Document]) -> Optional[CarouselImage]:
    if doc is None:
        return None
    if doc.get("document_type") != PROPERTY_IMAGE or not doc.get("ipfs_url"):
        return None
    return CarouselImage(
        ipfs_url=str(doc.get("ipfs_url")),
        name=str(doc.get("name") or ""),
        document_type=PROPERTY_IMAGE,
        file_format=str(doc.get("file_format") or ""),
    )


def _image_number(image: CarouselImage) -> int:
    m = _FIRST_NUMBER_RE.search(image.ipfs_url)
    return int(m.group(0)) if m else 0


def collect_carousel_images(
    classified: ClassifiedDocuments,
    graph: Graph,
    property_doc: Optional[Document] = None,
) -> List[CarouselImage]:
    """Property photos, ordered by the first number in their URL.

    Photos are found through data groups' property_has_file links. Failing
    that, any relationship whose ``to`` is a photo and whose ``from`` is the
    property document (or points outside this directory) is used.
    """
    images: List[CarouselImage] = []

    for group in classified.of_kind(DocumentKind.DATA_GROUP):
        for rel_id in linked_targets(graph, group.id, "relationships.property_has_file"):
            image = _image(_relationship_target(rel_id, classified, graph))
            if image:
                images.append(image)

    if not images:
        property_id = property_doc.id if property_doc else None
        for rel in classified.of_kind(DocumentKind.RELATIONSHIP):
            source_id = graph.get(rel.id, {}).get("from")
            if source_id is not None and source_id != property_id:
                continue
            image = _image(_relationship_target(rel.id, classified, graph))
            if image:
                images.append(image)

    seen = set()
    unique = []
    for image in images:
        if image.ipfs_url not in seen:
            seen.add(image.ipfs_url)
            unique.append(image)
    return sorted(unique, key=_image_number)


# ---------------------------------------------------------------------------
# Data label
# ---------------------------------------------------------------------------

def _labels(classified: ClassifiedDocuments) -> List[str]:
    labels = []
    for doc in classified.documents.values():
        if not isinstance(doc.content, dict):
            continue
        for key, value in doc.content.items():
            if key.lower() == "label" and isinstance(value, str):
                labels.append(value)
    return labels


def determine_data_label(classified: ClassifiedDocuments, images: List[CarouselImage]) -> str:
    """Which kind of data backs this fact sheet: Photo Metadata > Photo > County > Seed."""
    labels = _labels(classified)
    for label in LABEL_PRIORITY:
        if label in labels:
            return label

    if images:
        return "Photo Metadata"

    for doc in classified.documents.values():
        fmt = str(doc.get("file_format") or "").lower()
        if doc.get("document_type") == "photo" or fmt in PHOTO_FORMATS:
            return "Photo"

    county_kinds = (DocumentKind.SALE, DocumentKind.TAX, DocumentKind.STRUCTURE)
    if any(classified.of_kind(k) for k in county_kinds):
        return "County"
    return "Seed"


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

def _source(kind: str, description: str, request) -> Optional[DataSource]:
    if not request:
        return None
    if isinstance(request, str):
        url, host = parse_request_string(request)
    else:
        url = build_source_url(request)
        host = ""
        if url:
            try:
                host = httpx.URL(url).host
            except httpx.InvalidURL:
                host = ""
    if not url and not host:
        return None
    return DataSource(type=kind, url=url, host=host, description=description)


def collect_data_sources(
    address: Optional[Document],
    sales: List[Document],
    taxes: List[Document],
) -> List[DataSource]:
    sources: List[DataSource] = []
    if address is not None:
        src = _source("Address", "Property address and location data", address.get("source_http_request"))
        if src:
            sources.append(src)
    for i, sale in enumerate(sales, start=1):
        src = _source(f"Sales History {i}", "Property sales transaction data", sale.get("source_http_request"))
        if src:
            sources.append(src)
    for i, tax in enumerate(taxes, start=1):
        src = _source(f"Tax Information {i}", "Property tax assessment data", tax.get("source_http_request"))
        if src:
            sources.append(src)
    return sources
