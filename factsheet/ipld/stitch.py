"""Relationship stitching: connect a sale to the person or company that bought it.

A relationship document is structural (``from`` and ``to`` links). It
qualifies for a sale when its ``from`` resolves to that sale and its ``to``
resolves to a document classified as a person or company. Filenames play
no part in the match.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from factsheet.ipld.kinds import ClassifiedDocuments, DocumentKind
from factsheet.ipld.store import Document

logger = logging.getLogger(__name__)

OWNER_KINDS = (DocumentKind.PERSON, DocumentKind.COMPANY)

COMPANY_NAME_FIELDS = ("name", "company_name", "organization_name", "business_name")


def _clean(value) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def display_name(doc: Document) -> str:
    """Best display name for a person or company document, or ""."""
    full = _clean(doc.get("person_name")) or _clean(doc.get("full_name"))
    if full:
        return full

    parts = [_clean(doc.get(f)) for f in ("first_name", "middle_name", "last_name")]
    joined = " ".join(p for p in parts if p)
    if joined:
        return joined

    for f in COMPANY_NAME_FIELDS:
        name = _clean(doc.get(f))
        if name:
            return name

    # Last resort: any string field that looks like a name
    if isinstance(doc.content, dict):
        for key, value in doc.content.items():
            if "name" in key.lower() and _clean(value):
                return _clean(value)
    return ""


def _endpoint(
    rel: Document,
    end: str,
    classified: ClassifiedDocuments,
    graph: Mapping[str, Dict[str, str]],
) -> Optional[Document]:
    target_id = graph.get(rel.id, {}).get(end)
    if target_id is None:
        return None
    return classified.documents.get(target_id)


def find_owners(
    sale: Document,
    classified: ClassifiedDocuments,
    graph: Mapping[str, Dict[str, str]],
) -> List[str]:
    """Distinct owner names linked to sale, in relationship (store) order."""
    names: List[str] = []
    for rel in classified.of_kind(DocumentKind.RELATIONSHIP):
        source = _endpoint(rel, "from", classified, graph)
        if source is None or source.id != sale.id:
            continue
        target = _endpoint(rel, "to", classified, graph)
        if target is None or classified.kind_of(target.id) not in OWNER_KINDS:
            continue
        name = display_name(target)
        if name and name not in names:
            names.append(name)
    return names


def find_owner(
    sale: Document,
    classified: ClassifiedDocuments,
    graph: Mapping[str, Dict[str, str]],
) -> str:
    """Name of the first person/company linked to sale, or "" if none."""
    owners = find_owners(sale, classified, graph)
    if not owners:
        logger.debug("No owner relationship resolved for %s", sale.id)
        return ""
    return owners[0]
