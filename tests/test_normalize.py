import pytest

from factsheet.ipld.normalize import (
    build_address_string,
    build_source_url,
    classify_lot_type,
    collect_features,
    count_beds_baths,
    feature_text,
    format_coordinates,
    format_lot_area,
    format_month_year,
    parse_request_string,
    sale_from_document,
    sort_sales,
    sort_taxes,
    tax_from_document,
    title_case,
    to_int,
    to_number,
)
from factsheet.ipld.record import SaleInfo, TaxInfo


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------

def test_build_address_string_full():
    address = {
        "street_number": "123",
        "street_pre_directional_text": "N",
        "street_name": "MAIN",
        "street_suffix_type": "St",
        "street_post_directional_text": "SW",
        "unit_identifier": "4B",
    }
    assert build_address_string(address) == "123 N Main St SW, 4B"


def test_build_address_string_omits_missing_parts():
    assert build_address_string({"street_number": "123", "street_name": "main  oak", "street_suffix_type": "Street"}) \
        == "123 Main Oak Street"
    assert build_address_string({"street_name": "  elm ", "street_suffix_type": None}) == "Elm"
    assert build_address_string({}) == ""
    assert build_address_string(None) == ""


def test_format_coordinates():
    assert format_coordinates({"latitude": 39.78, "longitude": -89.65}) == "39.78, -89.65"
    assert format_coordinates({"latitude": 39.78}) == ""


# ---------------------------------------------------------------------------
# Rooms and lot
# ---------------------------------------------------------------------------

def test_count_beds_baths_from_layouts():
    layouts = [{"space_type": s} for s in ("Primary Bedroom", "Bedroom", "Full Bathroom", "Half Bathroom")]
    assert count_beds_baths(layouts) == {"beds": 2, "baths": 1.5}


def test_count_beds_baths_is_case_insensitive():
    layouts = [{"space_type": "BEDROOM"}, {"space_type": "full bathroom"}, {"space_type": "Powder Room"}]
    assert count_beds_baths(layouts) == {"beds": 1, "baths": 1.5}


def test_count_beds_baths_falls_back_to_structure():
    fallback = {"structure_rooms_bedroom": 3, "structure_rooms_bathroom": 2, "structure_rooms_bathroom_half": 1}
    assert count_beds_baths([{"space_type": "Kitchen"}], fallback) == {"beds": 3, "baths": 2.5}


def test_count_beds_baths_fallback_skips_null_fields():
    fallback = {"structure_rooms_bedroom": None, "bedrooms": 4}
    assert count_beds_baths([], fallback) == {"beds": 4, "baths": 0}


def test_count_beds_baths_tolerates_garbage():
    assert count_beds_baths([None, {"space_type": 7}, {}]) == {"beds": 0, "baths": 0}
    assert count_beds_baths(None) == {"beds": 0, "baths": 0}


@pytest.mark.parametrize("size, expected", [
    (10890, "Less than or equal to 1/4 acre"),
    (10891, "Less than or equal to 1/2 acre"),
    (21780, "Less than or equal to 1/2 acre"),
    (43560, "Less than or equal to 1 acre"),
    (50000, "Greater than 1 acre"),
    ("20,000 sqft", "Less than or equal to 1/2 acre"),
    (None, ""),
    ("n/a", ""),
])
def test_classify_lot_type(size, expected):
    assert classify_lot_type(size) == expected


def test_format_lot_area():
    assert format_lot_area(10890) == "10890 sqft"
    assert format_lot_area("abc") == ""


# ---------------------------------------------------------------------------
# Sales and taxes
# ---------------------------------------------------------------------------

def test_sort_sales_descending():
    sales = [SaleInfo(date_iso=d) for d in ("2005-09-30", "2022-04-07", "2005-10-28")]
    assert [s.date_iso for s in sort_sales(sales)] == ["2022-04-07", "2005-10-28", "2005-09-30"]


def test_sort_sales_is_stable_and_puts_undated_last():
    sales = [
        SaleInfo(date_iso="", amount=1),
        SaleInfo(date_iso="2010-01-01", amount=2),
        SaleInfo(date_iso="2010-01-01", amount=3),
        SaleInfo(date_iso="garbage", amount=4),
    ]
    assert [s.amount for s in sort_sales(sales)] == [2, 3, 1, 4]


def test_sale_from_document():
    sale = sale_from_document(
        {"purchase_price_amount": "450,000", "ownership_transfer_date": "2023-06-15"},
        ["Jane Doe", "John Doe"],
    )
    assert sale.amount == 450000
    assert sale.date == "June 2023"
    assert sale.owner_name == "Jane Doe"
    assert sale.to_dict()["dateIso"] == "2023-06-15"


def test_sale_from_document_alternate_fields():
    sale = sale_from_document({"sales_transaction_amount": 1000.5, "sales_date": "2001-02-03"})
    assert sale.amount == 1000.5
    assert sale.date == "February 2001"
    assert sale.owner_name == ""


def test_sale_from_document_bad_amount():
    assert sale_from_document({"purchase_price_amount": "unknown"}).amount == 0


def test_tax_from_document():
    assert tax_from_document({"tax_year": 2023, "tax_assessed_value": 425000}) == TaxInfo(2023, 425000)
    assert tax_from_document({"tax_year": "2021", "property_taxable_value_amount": "1,000"}) == TaxInfo(2021, 1000)
    assert tax_from_document({"property_assessed_value_amount": 5}) is None


def test_sort_taxes_ascending():
    taxes = [TaxInfo(2023, 3), TaxInfo(2021, 1), TaxInfo(2022, 2)]
    assert [t.year for t in sort_taxes(taxes)] == [2021, 2022, 2023]


@pytest.mark.parametrize("value, expected", [
    ("2023-06-15", "June 2023"),
    ("2023-06-15T10:00:00Z", "June 2023"),
    ("12/01/1999", "December 1999"),
    ("", ""),
    (None, ""),
    ("not a date", ""),
])
def test_format_month_year(value, expected):
    assert format_month_year(value) == expected


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

def test_feature_text():
    assert feature_text("cooling_system_type", "central_air") == "Central Air"
    assert feature_text("solar_panel_present", True) == "Solar Panel Present"
    assert feature_text("solar_panel_present", False) == ""
    assert feature_text("ceiling_height_average", 9) == "Ceiling Height Average: 9"
    assert feature_text("view", "other") == ""
    assert feature_text("view", "Other") == ""
    assert feature_text("view", None) == ""
    assert feature_text("smart_home_features", ["Thermostat", "other", "Doorbell"]) == "Thermostat, Doorbell"


def test_collect_features_buckets():
    features = collect_features(
        {"flooring_material_primary": "Hardwood", "roof_covering_material": "Metal", "unrelated": "x"},
        {"cooling_system_type": "CentralAir", "heating_system_type": "other", "sewer_type": "Public"},
        {"view": "Water"},
    )
    assert features.interior == ["Hardwood", "CentralAir"]
    assert features.exterior == ["Metal", "Public", "Water"]


def test_collect_features_missing_entities():
    features = collect_features(None, None, None)
    assert features.interior == [] and features.exterior == []


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

def test_title_case_and_to_number():
    assert title_case("SAN  jose") == "San Jose"
    assert title_case(None) == ""
    assert to_number("1,500 sqft") == 1500.0
    assert to_number(True) is None
    assert to_number(float("nan")) is None


def test_build_source_url_structured():
    request = {
        "url": "https://records.example.gov/search",
        "multiValueQueryString": {"parcel": ["01-2345"], "tab": ["sales", "tax"]},
    }
    assert build_source_url(request) == "https://records.example.gov/search?parcel=01-2345&tab=sales&tab=tax"


def test_build_source_url_raw_request():
    raw = "GET /parcel/123?x=1 HTTP/1.1\r\nHost: records.example.gov\r\n\r\n"
    assert parse_request_string(raw) == ("/parcel/123?x=1", "records.example.gov")
    assert build_source_url(raw) == "https://records.example.gov/parcel/123?x=1"


def test_build_source_url_missing():
    assert build_source_url(None) == ""
    assert build_source_url({"method": "GET"}) == ""
    assert build_source_url("") == ""


def test_oversized_numbers_are_not_numbers():
    huge = "9" * 400
    assert to_number(huge) is None
    assert to_number(10 ** 400) is None
    assert to_int(huge) == 0
    assert tax_from_document({"tax_year": huge, "tax_assessed_value": 1}) is None
    assert count_beds_baths([], {"bedrooms": huge, "bathrooms": huge}) == {"beds": 0, "baths": 0}
    assert classify_lot_type(huge) == ""
    assert format_lot_area(huge) == ""


def test_feature_text_ignores_nested_lists():
    assert feature_text("smart_home_features", ["Doorbell", ["Thermostat"], {"a": 1}]) == "Doorbell"
