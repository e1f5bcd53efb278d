import json
from pathlib import Path

import pytest

from factsheet.config import BuildOptions


def link(doc_id: str) -> dict:
    return {"/": f"./{doc_id}.json"}


def write_documents(directory: Path, documents: dict) -> Path:
    """Write {doc_id: content} as <doc_id>.json files. Strings are written raw."""
    directory.mkdir(parents=True, exist_ok=True)
    for doc_id, content in documents.items():
        text = content if isinstance(content, str) else json.dumps(content)
        (directory / f"{doc_id}.json").write_text(text, encoding="utf-8")
    return directory


SAMPLE_PROPERTY = {
    "property": {
        "parcel_identifier": "01-2345-678",
        "property_type": "SingleFamily",
        "livable_floor_area": "1,500",
        "property_structure_built_year": 1998,
        "property_legal_description_text": "LOT 5 BLK 2 OAK HILLS",
        "source_http_request": {
            "method": "GET",
            "url": "https://records.example.gov/search",
            "multiValueQueryString": {"parcel": ["01-2345-678"]},
        },
    },
    "address": {
        "street_number": "123",
        "street_name": "main",
        "street_suffix_type": "Street",
        "city_name": "SPRINGFIELD",
        "state_code": "IL",
        "postal_code": "62701",
        "county_name": "SANGAMON",
        "latitude": 39.78,
        "longitude": -89.65,
    },
    "lot": {"lot_size_sqft": 10890, "view": "Water", "fencing_type": "Wood"},
    "structure": {
        "flooring_material_primary": "Hardwood",
        "exterior_wall_material_primary": "Brick",
        "roof_covering_material": "Architectural Asphalt Shingle",
    },
    "utility": {
        "cooling_system_type": "CentralAir",
        "heating_system_type": "other",
        "solar_panel_present": True,
    },
    "sales_1": {"purchase_price_amount": 450000, "ownership_transfer_date": "2023-06-15"},
    "sales_2": {"purchase_price_amount": "300,000", "ownership_transfer_date": "2015-03-01"},
    "person_1": {"first_name": "Jane", "last_name": "Doe"},
    "company_1": {"name": "Acme Holdings LLC"},
    "relationship_sales_person": {"from": link("sales_1"), "to": link("person_1")},
    "relationship_sales_company": {"from": link("sales_2"), "to": link("company_1")},
    "tax_2023": {"tax_year": 2023, "property_assessed_value_amount": 425000},
    "tax_2022": {"tax_year": 2022, "property_assessed_value_amount": 400000},
    "layout_1": {"space_type": "Primary Bedroom", "floor_level": "1st Floor", "size_square_feet": 220},
    "layout_2": {"space_type": "Bedroom", "floor_level": "2nd Floor"},
    "layout_3": {"space_type": "Full Bathroom", "floor_level": "1st Floor"},
    "layout_4": {"space_type": "Half Bathroom", "floor_level": "Basement"},
}


@pytest.fixture
def sample_property(tmp_path) -> Path:
    """A complete property directory named prop-1 under tmp_path/input."""
    return write_documents(tmp_path / "input" / "prop-1", SAMPLE_PROPERTY)


@pytest.fixture
def build_options(tmp_path) -> BuildOptions:
    return BuildOptions(
        input_dir=tmp_path / "input",
        output_dir=tmp_path / "dist",
        domain="https://homes.example.com",
    )
