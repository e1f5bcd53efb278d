import logging

from factsheet.ipld.kinds import (
    DocumentKind,
    classify,
    classify_documents,
    find_all,
    find_one,
    merge_structures,
)
from factsheet.ipld.store import Document, load_documents

from conftest import link, write_documents


def _doc(content, doc_id="doc"):
    return Document(id=doc_id, path=None, content=content)


def test_classify_sample_property(sample_property):
    classified = classify_documents(load_documents(sample_property))
    assert classified.kind_of("property") is DocumentKind.PROPERTY
    assert classified.kind_of("address") is DocumentKind.ADDRESS
    assert classified.kind_of("lot") is DocumentKind.LOT
    assert classified.kind_of("structure") is DocumentKind.STRUCTURE
    assert classified.kind_of("utility") is DocumentKind.UTILITY
    assert classified.kind_of("sales_1") is DocumentKind.SALE
    assert classified.kind_of("tax_2023") is DocumentKind.TAX
    assert classified.kind_of("layout_1") is DocumentKind.LAYOUT
    assert classified.kind_of("person_1") is DocumentKind.PERSON
    assert classified.kind_of("company_1") is DocumentKind.COMPANY
    assert classified.kind_of("relationship_sales_person") is DocumentKind.RELATIONSHIP
    assert classified.counts()["layout"] == 4


def test_classify_edge_kinds():
    assert classify(_doc({"label": "County", "relationships": {}})) is DocumentKind.DATA_GROUP
    assert classify(_doc({"full_address": "1 A St"})) is DocumentKind.UNNORMALIZED_ADDRESS
    assert classify(_doc({"ipfs_url": "x.jpg", "name": "Front"})) is DocumentKind.FILE
    assert classify(_doc({"flooring_material_primary": "Carpet"})) is DocumentKind.UNKNOWN
    assert classify(_doc({"something": 1})) is DocumentKind.UNKNOWN
    assert classify(_doc([1, 2])) is DocumentKind.UNKNOWN


def test_relationship_needs_both_links():
    assert classify(_doc({"from": link("a"), "to": "b"})) is not DocumentKind.RELATIONSHIP


def test_find_one_and_find_all_use_store_order(tmp_path):
    write_documents(tmp_path, {
        "b_sale": {"purchase_price_amount": 2},
        "a_sale": {"purchase_price_amount": 1},
        "other": {},
    })
    docs = load_documents(tmp_path)
    assert find_one(docs, "purchase_price_amount").id == "a_sale"
    assert [d.id for d in find_all(docs, "purchase_price_amount")] == ["a_sale", "b_sale"]
    assert find_one(docs, "tax_year") is None
    assert find_all(docs, "tax_year") == []


def test_duplicate_singleton_first_wins_with_warning(tmp_path, caplog):
    write_documents(tmp_path, {
        "building": {"property_type": "Condo"},
        "property": {"property_type": "SingleFamily"},
    })
    classified = classify_documents(load_documents(tmp_path))
    with caplog.at_level(logging.WARNING):
        chosen = classified.first(DocumentKind.PROPERTY)
    assert chosen.id == "building"
    assert "2 documents classified as property" in caplog.text


def test_first_missing_kind_is_none(tmp_path):
    write_documents(tmp_path, {"a": {}})
    assert classify_documents(load_documents(tmp_path)).first(DocumentKind.LOT) is None


def test_merge_structures():
    a = _doc({"roof_covering_material": "Metal", "foundation_type": None, "gutters_material": "Aluminum"}, "a")
    b = _doc({"roof_covering_material": None, "foundation_type": "Slab", "gutters_material": "Vinyl"}, "b")
    merged = merge_structures([a, b])
    assert merged.id == "a"
    assert merged.content == {
        "roof_covering_material": "Metal",
        "foundation_type": "Slab",
        "gutters_material": "Vinyl",
    }
    assert merge_structures([]) is None
    assert merge_structures([a]) is a
