"""Property record assembler.

Runs the whole pipeline for one property directory:
store -> link resolver -> classification -> owner stitching -> normalizers,
and returns the flat PropertyRecord. Intermediate documents and link tables
stay inside this module.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from factsheet.ipld.kinds import ClassifiedDocuments, DocumentKind, classify_documents, merge_structures
from factsheet.ipld.links import resolve_links
from factsheet.ipld.media import (
    collect_carousel_images,
    collect_data_sources,
    determine_data_label,
    select_layouts,
    summarize_layouts,
)
from factsheet.ipld.normalize import (
    build_address_string,
    build_source_url,
    classify_lot_type,
    collect_features,
    count_beds_baths,
    format_coordinates,
    format_lot_area,
    sale_from_document,
    sort_sales,
    sort_taxes,
    tax_from_document,
    title_case,
    to_int,
    to_number,
)
from factsheet.ipld.record import PropertyInfo, PropertyRecord, SaleInfo, TaxInfo
from factsheet.ipld.stitch import find_owners
from factsheet.ipld.store import Document, load_documents

logger = logging.getLogger(__name__)


def _content(doc: Optional[Document]) -> Dict[str, Any]:
    if doc is None or not isinstance(doc.content, dict):
        return {}
    return doc.content


def _first(data: Mapping, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def extract_property_info(
    property_doc: Optional[Document],
    address_doc: Optional[Document],
    unnormalized_doc: Optional[Document],
    lot_doc: Optional[Document],
    structure_doc: Optional[Document],
    layouts: List[Document],
) -> PropertyInfo:
    prop = _content(property_doc)
    address = _content(address_doc)
    unnormalized = _content(unnormalized_doc)
    lot = _content(lot_doc)

    street = build_address_string(address) if address else ""
    if not street:
        street = str(_first(address, "street_address") or _first(unnormalized, "full_address") or "")

    # Room counts fall back to structure, then property-level fields
    fallback = {**prop, **{k: v for k, v in _content(structure_doc).items() if v is not None}}
    rooms = count_beds_baths([d.content for d in layouts], fallback)

    lot_size = _first(lot, "lot_size_sqft", "lot_area_sqft")
    year_built = to_number(prop.get("property_structure_built_year"))

    return PropertyInfo(
        address=street,
        city=title_case(address.get("city_name")),
        state=str(address.get("state_code") or ""),
        county=title_case(address.get("county_name")) or title_case(unnormalized.get("county_jurisdiction")),
        postal_code=str(address.get("postal_code") or ""),
        coordinates=format_coordinates(address),
        parcel_id=str(_first(prop, "parcel_identifier", "parcel_id") or ""),
        beds=rooms["beds"],
        baths=rooms["baths"],
        sqft=to_int(_first(prop, "livable_floor_area", "total_sqft", "living_area")),
        type=str(prop.get("property_type") or ""),
        year_built=int(year_built) if year_built is not None else None,
        legal_description=str(prop.get("property_legal_description_text") or ""),
        lot_area=format_lot_area(lot_size),
        lot_type=classify_lot_type(lot_size),
        source_url=build_source_url(
            prop.get("source_http_request") or address.get("source_http_request")
        ),
    )


def extract_sales(classified: ClassifiedDocuments, graph: Mapping[str, Dict[str, str]]) -> List[SaleInfo]:
    sales = []
    for doc in classified.of_kind(DocumentKind.SALE):
        owners = find_owners(doc, classified, graph)
        sales.append(sale_from_document(doc.content, owners))
    return sort_sales(sales)


def extract_taxes(classified: ClassifiedDocuments) -> List[TaxInfo]:
    taxes = []
    for doc in classified.of_kind(DocumentKind.TAX):
        tax = tax_from_document(doc.content)
        if tax is None:
            logger.debug("Skipping tax document %s without a tax year", doc.id)
            continue
        taxes.append(tax)
    return sort_taxes(taxes)


def assemble(directory: Path, property_id: Optional[str] = None) -> PropertyRecord:
    """Build the PropertyRecord for one property directory.

    Raises:
        PropertyLoadError: the directory is missing or unreadable. Every
            other problem (bad JSON, dangling links, missing entities) is
            absorbed and shows up as empty/default fields.
    """
    pid = property_id or directory.name
    start = time.time()

    documents = load_documents(directory, pid)
    graph = resolve_links(documents)
    classified = classify_documents(documents)
    logger.debug("[%s] Document kinds: %s", pid, classified.counts())

    property_doc = classified.first(DocumentKind.PROPERTY)
    address_doc = classified.first(DocumentKind.ADDRESS)
    unnormalized_doc = classified.first(DocumentKind.UNNORMALIZED_ADDRESS)
    lot_doc = classified.first(DocumentKind.LOT)
    utility_doc = classified.first(DocumentKind.UTILITY)
    structure_doc = merge_structures(classified.of_kind(DocumentKind.STRUCTURE))

    layouts = select_layouts(classified, graph)
    images = collect_carousel_images(classified, graph, property_doc)

    record = PropertyRecord(
        property_id=pid,
        property=extract_property_info(
            property_doc, address_doc, unnormalized_doc, lot_doc, structure_doc, layouts
        ),
        sales=extract_sales(classified, graph),
        taxes=extract_taxes(classified),
        features=collect_features(_content(structure_doc), _content(utility_doc), _content(lot_doc)),
        structure=dict(structure_doc.content) if structure_doc else None,
        utility=dict(utility_doc.content) if utility_doc else None,
        layouts=summarize_layouts(layouts),
        carousel_images=images,
        data_sources=collect_data_sources(
            address_doc,
            classified.of_kind(DocumentKind.SALE),
            classified.of_kind(DocumentKind.TAX),
        ),
        data_label=determine_data_label(classified, images),
    )

    logger.debug(
        "[%s] Assembled %d sales, %d taxes, %d layouts in %.2fs",
        pid, len(record.sales), len(record.taxes), len(layouts), time.time() - start,
    )
    return record
