"""Entity locator: classify documents by signature fields.

Documents carry no explicit type tag. Each one is classified exactly once
into a DocumentKind by testing, in priority order, for the fields that are
characteristic of that kind. Lookups then run against the classification
instead of rescanning raw JSON.

Singleton lookups (``first``) are first-match-wins in store order. The store
loads files in sorted filename order, so the winner is stable across runs;
a duplicate is logged as a warning.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from factsheet.ipld.links import is_link
from factsheet.ipld.store import Document

logger = logging.getLogger(__name__)


class DocumentKind(str, Enum):
    RELATIONSHIP = "relationship"
    DATA_GROUP = "data_group"
    ADDRESS = "address"
    UNNORMALIZED_ADDRESS = "unnormalized_address"
    PROPERTY = "property"
    SALE = "sale"
    TAX = "tax"
    LAYOUT = "layout"
    LOT = "lot"
    UTILITY = "utility"
    STRUCTURE = "structure"
    FILE = "file"
    PERSON = "person"
    COMPANY = "company"
    UNKNOWN = "unknown"


# A structure document is recognised by carrying at least two of these.
STRUCTURE_FIELDS = (
    "flooring_material_primary",
    "flooring_material_secondary",
    "exterior_wall_material_primary",
    "exterior_wall_material_secondary",
    "roof_covering_material",
    "roof_structure_material",
    "interior_wall_surface_material_primary",
    "interior_wall_finish_primary",
    "foundation_type",
    "foundation_material",
    "architectural_style_type",
)
STRUCTURE_MIN_FIELDS = 2

ASSESSED_VALUE_FIELDS = (
    "property_assessed_value_amount",
    "tax_assessed_value",
    "property_taxable_value_amount",
)


def has_field(documents: Mapping[str, Document], signature_field: str) -> Iterable[Document]:
    for doc in documents.values():
        if doc.has(signature_field):
            yield doc


def find_one(documents: Mapping[str, Document], signature_field: str) -> Optional[Document]:
    """First document (store order) whose top-level content has signature_field."""
    return next(iter(has_field(documents, signature_field)), None)


def find_all(documents: Mapping[str, Document], signature_field: str) -> List[Document]:
    """Every document (store order) whose top-level content has signature_field."""
    return list(has_field(documents, signature_field))


def _any_of(*fields: str) -> Callable[[dict], bool]:
    return lambda content: any(f in content for f in fields)


def _is_relationship(content: dict) -> bool:
    return is_link(content.get("from")) and is_link(content.get("to"))


def _is_data_group(content: dict) -> bool:
    return "label" in content and isinstance(content.get("relationships"), dict)


def _is_structure(content: dict) -> bool:
    return sum(1 for f in STRUCTURE_FIELDS if f in content) >= STRUCTURE_MIN_FIELDS


# Priority order matters: e.g. a file document also has "name" and must not
# be taken for a company.
SIGNATURES: Sequence[Tuple[DocumentKind, Callable[[dict], bool]]] = (
    (DocumentKind.RELATIONSHIP, _is_relationship),
    (DocumentKind.DATA_GROUP, _is_data_group),
    (DocumentKind.ADDRESS, _any_of("street_name")),
    (DocumentKind.UNNORMALIZED_ADDRESS, _any_of("full_address")),
    (DocumentKind.PROPERTY, _any_of("parcel_identifier", "parcel_id", "property_type")),
    (DocumentKind.SALE, _any_of("purchase_price_amount", "sales_transaction_amount")),
    (DocumentKind.TAX, _any_of("tax_year", *ASSESSED_VALUE_FIELDS)),
    (DocumentKind.LAYOUT, _any_of("space_type")),
    (DocumentKind.LOT, _any_of("lot_size_sqft", "lot_area_sqft", "lot_size_acre")),
    (DocumentKind.UTILITY, _any_of("cooling_system_type", "heating_system_type")),
    (DocumentKind.STRUCTURE, _is_structure),
    (DocumentKind.FILE, _any_of("ipfs_url", "document_type")),
    (DocumentKind.PERSON, _any_of("first_name", "last_name", "person_name")),
    (DocumentKind.COMPANY, _any_of("name", "company_name", "organization_name", "business_name")),
)


def classify(doc: Document) -> DocumentKind:
    content = doc.content
    if not isinstance(content, dict):
        return DocumentKind.UNKNOWN
    for kind, predicate in SIGNATURES:
        if predicate(content):
            return kind
    return DocumentKind.UNKNOWN


@dataclass
class ClassifiedDocuments:
    """Documents of one property with their kind, in store order."""
    documents: Dict[str, Document]
    kinds: Dict[str, DocumentKind] = field(default_factory=dict)

    def kind_of(self, doc_id: str) -> DocumentKind:
        return self.kinds.get(doc_id, DocumentKind.UNKNOWN)

    def of_kind(self, kind: DocumentKind) -> List[Document]:
        return [self.documents[i] for i, k in self.kinds.items() if k is kind]

    def first(self, kind: DocumentKind) -> Optional[Document]:
        """First document of kind in store order; duplicates are logged."""
        matches = self.of_kind(kind)
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "%d documents classified as %s (%s); using %s",
                len(matches),
                kind.value,
                ", ".join(d.id for d in matches),
                matches[0].id,
            )
        return matches[0]

    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for kind in self.kinds.values():
            out[kind.value] = out.get(kind.value, 0) + 1
        return out


def classify_documents(documents: Mapping[str, Document]) -> ClassifiedDocuments:
    """Single pass over the store assigning one kind per document."""
    kinds = {doc_id: classify(doc) for doc_id, doc in documents.items()}
    classified = ClassifiedDocuments(documents=dict(documents), kinds=kinds)
    unknown = [i for i, k in kinds.items() if k is DocumentKind.UNKNOWN]
    if unknown:
        logger.debug("Unclassified documents: %s", ", ".join(unknown))
    return classified


def merge_structures(docs: List[Document]) -> Optional[Document]:
    """Merge several structure documents into one.

    Later non-null values override earlier ones; a null only fills a key
    that is not present yet. The merged document keeps the first id.
    """
    if not docs:
        return None
    if len(docs) == 1:
        return docs[0]

    merged: dict = {}
    for doc in docs:
        for key, value in doc.content.items():
            if value is not None or key not in merged:
                merged[key] = value

    logger.debug("Merged %d structure documents into %d fields", len(docs), len(merged))
    first = docs[0]
    return Document(id=first.id, path=first.path, content=merged)
