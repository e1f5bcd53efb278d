"""Field normalizers: derived, display-ready values from located entities.

Every function here is total. Missing or malformed input yields a fallback
(empty string, zero, empty list), never an exception.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import httpx

from factsheet.ipld.record import Features, SaleInfo, TaxInfo

logger = logging.getLogger(__name__)

SQFT_PER_ACRE = 43560

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%d %b %Y", "%d %B %Y")
_LEADING_NUMBER_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")
_REQUEST_LINE_RE = re.compile(r"^(?:GET|POST|PUT|HEAD)\s+(\S+)", re.MULTILINE)
_HOST_RE = re.compile(r"^Host:\s*([^\r\n]+)", re.MULTILINE | re.IGNORECASE)

# Values that mean "nothing to show" in enumerated feature fields.
_FEATURE_SENTINELS = {"", "other", "null"}

# (source entity, field, bucket). Fixed assignment, not inferred.
FEATURE_TABLE: Tuple[Tuple[str, str, str], ...] = (
    ("structure", "flooring_material_primary", "interior"),
    ("structure", "flooring_material_secondary", "interior"),
    ("structure", "subfloor_material", "interior"),
    ("structure", "ceiling_height_average", "interior"),
    ("structure", "ceiling_structure_material", "interior"),
    ("structure", "ceiling_insulation_type", "interior"),
    ("structure", "interior_door_material", "interior"),
    ("structure", "window_frame_material", "interior"),
    ("structure", "window_glazing_type", "interior"),
    ("structure", "window_operation_type", "interior"),
    ("structure", "window_screen_material", "interior"),
    ("structure", "interior_wall_surface_material_primary", "interior"),
    ("structure", "interior_wall_finish_primary", "interior"),
    ("utility", "cooling_system_type", "interior"),
    ("utility", "heating_system_type", "interior"),
    ("utility", "hvac_condensing_unit_present", "interior"),
    ("utility", "hvac_unit_condition", "interior"),
    ("utility", "electrical_panel_capacity", "interior"),
    ("utility", "electrical_wiring_type", "interior"),
    ("utility", "plumbing_system_type", "interior"),
    ("utility", "smart_home_features", "interior"),
    ("structure", "exterior_wall_material_primary", "exterior"),
    ("structure", "exterior_wall_material_secondary", "exterior"),
    ("structure", "exterior_wall_insulation_type", "exterior"),
    ("structure", "roof_covering_material", "exterior"),
    ("structure", "roof_structure_material", "exterior"),
    ("structure", "roof_design_type", "exterior"),
    ("structure", "gutters_material", "exterior"),
    ("structure", "foundation_type", "exterior"),
    ("structure", "foundation_material", "exterior"),
    ("structure", "foundation_waterproofing", "exterior"),
    ("structure", "exterior_door_material", "exterior"),
    ("structure", "architectural_style_type", "exterior"),
    ("structure", "primary_framing_material", "exterior"),
    ("structure", "secondary_framing_material", "exterior"),
    ("utility", "water_source_type", "exterior"),
    ("utility", "sewer_type", "exterior"),
    ("utility", "solar_panel_present", "exterior"),
    ("utility", "solar_panel_type", "exterior"),
    ("utility", "solar_inverter_visible", "exterior"),
    ("utility", "public_utility_type", "exterior"),
    ("lot", "view", "exterior"),
    ("lot", "fencing_type", "exterior"),
    ("lot", "driveway_material", "exterior"),
)


# ---------------------------------------------------------------------------
# Small coercions
# ---------------------------------------------------------------------------

def _as_mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return " ".join(value.split())
    return ""


def to_number(value: Any) -> Optional[float]:
    """Leading number of value ("10890 sqft" -> 10890.0), or None.

    Values that do not fit a finite float (huge integers, "9" * 400) give None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        m = _LEADING_NUMBER_RE.match(value.replace(",", ""))
        if not m:
            return None
        value = m.group(1)
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def _first_present(data: Mapping, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def to_int(value: Any, default: int = 0) -> int:
    number = to_number(value)
    return int(number) if number is not None else default


def _amount(value: Any) -> float:
    """Money amount: keep ints as ints so templates don't show '.0'."""
    number = to_number(value)
    if number is None:
        return 0
    return int(number) if number.is_integer() else number


def title_case(text: Any) -> str:
    """'SAN  jose' -> 'San Jose'."""
    words = _text(text).split(" ")
    return " ".join(w[:1].upper() + w[1:].lower() for w in words if w)


def parse_date(value: Any) -> Optional[date]:
    raw = _text(value)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw[:10]).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------

def build_address_string(address: Optional[Mapping]) -> str:
    """Street line from address components.

    Order: number, pre-directional, street name (title-cased), suffix,
    post-directional; ", <unit>" appended when present.
    """
    data = _as_mapping(address)
    parts = [
        _text(data.get("street_number")),
        _text(data.get("street_pre_directional_text")),
        title_case(data.get("street_name")),
        _text(data.get("street_suffix_type")),
        _text(data.get("street_post_directional_text")),
    ]
    line = " ".join(p for p in parts if p).strip()
    unit = _text(data.get("unit_identifier"))
    if unit:
        line = f"{line}, {unit}" if line else unit
    return line


def format_coordinates(address: Optional[Mapping]) -> str:
    data = _as_mapping(address)
    lat, lng = data.get("latitude"), data.get("longitude")
    if to_number(lat) is None or to_number(lng) is None:
        return ""
    return f"{lat}, {lng}"


# ---------------------------------------------------------------------------
# Rooms and lot
# ---------------------------------------------------------------------------

def _space_type(layout: Any) -> str:
    return _text(_as_mapping(layout).get("space_type")).lower()


def count_beds_baths(
    layouts: Iterable[Mapping],
    fallback: Optional[Mapping] = None,
) -> Dict[str, Any]:
    """Bedroom and bathroom counts from layout documents.

    Any space type containing "bedroom" is a bed; "full bathroom" counts 1,
    "half bathroom" / "half bath" / "powder room" count 0.5. A count that
    comes out zero falls back to the room-count fields of ``fallback``
    (a structure or property document).
    """
    beds = 0
    baths = 0.0
    for layout in layouts or ():
        space = _space_type(layout)
        if not space:
            continue
        if "bedroom" in space:
            beds += 1
        if "full bathroom" in space:
            baths += 1
        elif "half bathroom" in space or "half bath" in space or "powder room" in space:
            baths += 0.5

    data = _as_mapping(fallback)
    if beds == 0:
        beds = to_int(_first_present(data, "structure_rooms_bedroom", "bedrooms"))
    if baths == 0:
        full = to_int(_first_present(data, "structure_rooms_bathroom", "bathrooms"))
        half = to_int(_first_present(data, "structure_rooms_bathroom_half", "half_bathrooms"))
        baths = full + half * 0.5

    return {"beds": beds, "baths": baths}


def classify_lot_type(lot_size_sqft: Any) -> str:
    size = to_number(lot_size_sqft)
    if size is None:
        return ""
    if size <= SQFT_PER_ACRE / 4:
        return "Less than or equal to 1/4 acre"
    if size <= SQFT_PER_ACRE / 2:
        return "Less than or equal to 1/2 acre"
    if size <= SQFT_PER_ACRE:
        return "Less than or equal to 1 acre"
    return "Greater than 1 acre"


def format_lot_area(lot_size_sqft: Any) -> str:
    size = to_number(lot_size_sqft)
    if size is None:
        return ""
    return f"{int(size) if size.is_integer() else size} sqft"


# ---------------------------------------------------------------------------
# Sales and taxes
# ---------------------------------------------------------------------------

def format_month_year(iso_date: Any) -> str:
    """'2023-06-15' -> 'June 2023'. Empty or unparseable input gives ''."""
    d = parse_date(iso_date)
    if d is None:
        return ""
    return f"{MONTHS[d.month - 1]} {d.year}"


def sale_from_document(data: Optional[Mapping], owners: Optional[List[str]] = None) -> SaleInfo:
    content = _as_mapping(data)
    raw_date = _text(content.get("ownership_transfer_date") or content.get("sales_date"))
    amount = content.get("purchase_price_amount")
    if amount is None:
        amount = content.get("sales_transaction_amount")
    owners = list(owners or [])
    return SaleInfo(
        date=format_month_year(raw_date),
        date_iso=raw_date,
        amount=_amount(amount),
        owner_name=owners[0] if owners else "",
        owners=owners,
    )


def sort_sales(sales: Iterable[SaleInfo]) -> List[SaleInfo]:
    """Most recent first. Ties and undated sales keep encounter order,
    undated ones after all dated ones."""
    def _key(sale: SaleInfo):
        d = parse_date(sale.date_iso)
        return (d is not None, d or date.min)

    return sorted(sales, key=_key, reverse=True)


def tax_from_document(data: Optional[Mapping]) -> Optional[TaxInfo]:
    """TaxInfo for a tax document, or None when it has no usable year."""
    content = _as_mapping(data)
    year = to_number(content.get("tax_year"))
    if year is None:
        return None
    value = None
    for f in ("property_assessed_value_amount", "tax_assessed_value", "property_taxable_value_amount"):
        if to_number(content.get(f)) is not None:
            value = content.get(f)
            break
    return TaxInfo(year=int(year), assessed_value=_amount(value))


def sort_taxes(taxes: Iterable[TaxInfo]) -> List[TaxInfo]:
    """Oldest year first."""
    return sorted(taxes, key=lambda t: to_int(t.year))


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

def field_label(name: str) -> str:
    """'solar_panel_present' -> 'Solar Panel Present'."""
    return title_case(name.replace("_", " "))


def humanize(value: str) -> str:
    """'Central_air' -> 'Central Air'. Already-cased words keep their case."""
    words = _text(value.replace("_", " ")).split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def feature_text(name: str, value: Any) -> str:
    """Display text for one feature field, or '' when there is nothing to show."""
    if value is None or value is False:
        return ""
    if value is True:
        return field_label(name)
    if isinstance(value, (int, float)):
        return f"{field_label(name)}: {value}"
    if isinstance(value, str):
        if value.strip().lower() in _FEATURE_SENTINELS:
            return ""
        return humanize(value)
    if isinstance(value, list):
        items = [feature_text(name, v) for v in value if not isinstance(v, (list, dict))]
        return ", ".join(i for i in items if i and i != field_label(name))
    return ""


def collect_features(
    structure: Optional[Mapping],
    utility: Optional[Mapping],
    lot: Optional[Mapping],
) -> Features:
    sources = {
        "structure": _as_mapping(structure),
        "utility": _as_mapping(utility),
        "lot": _as_mapping(lot),
    }
    features = Features()
    for source, name, bucket in FEATURE_TABLE:
        text = feature_text(name, sources[source].get(name))
        if text:
            getattr(features, bucket).append(text)
    return features


# ---------------------------------------------------------------------------
# Source requests
# ---------------------------------------------------------------------------

def parse_request_string(request: str) -> Tuple[str, str]:
    """('GET /path HTTP/1.1\\nHost: x') -> ('/path', 'x')."""
    url_match = _REQUEST_LINE_RE.search(request)
    host_match = _HOST_RE.search(request)
    return (
        url_match.group(1) if url_match else "",
        host_match.group(1).strip() if host_match else "",
    )


def build_source_url(request: Any) -> str:
    """Absolute URL of the request a document was extracted from.

    Accepts the structured form ``{"url": ..., "multiValueQueryString":
    {key: [values]}}`` or a raw HTTP request string.
    """
    if isinstance(request, str):
        path, host = parse_request_string(request)
        if not path:
            return ""
        if host and path.startswith("/"):
            return f"https://{host}{path}"
        return path

    data = _as_mapping(request)
    base = _text(data.get("url"))
    if not base:
        return ""

    params: List[Tuple[str, str]] = []
    for key, values in _as_mapping(data.get("multiValueQueryString")).items():
        if not isinstance(values, list):
            values = [values]
        params.extend((str(key), str(v)) for v in values if v is not None)

    try:
        url = httpx.URL(base)
        if params:
            url = url.copy_with(params=list(url.params.multi_items()) + params)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        logger.debug("Could not build source URL from %r: %s", base, e)
        return base
    return str(url)
