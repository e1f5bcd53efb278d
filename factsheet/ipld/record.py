"""Flattened property record handed to the template renderer.

Field names in ``to_dict`` output are the ones the templates use. Records
are frozen once assembled.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PropertyInfo:
    address: str = ""
    city: str = ""
    state: str = ""
    county: str = ""
    postal_code: str = ""
    coordinates: str = ""
    parcel_id: str = ""
    beds: int = 0
    baths: float = 0.0
    sqft: int = 0
    type: str = ""
    year_built: Optional[int] = None
    legal_description: str = ""
    lot_area: str = ""
    lot_type: str = ""
    source_url: str = ""

    def to_dict(self) -> Dict:
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "county": self.county,
            "postalCode": self.postal_code,
            "coordinates": self.coordinates,
            "parcelId": self.parcel_id,
            "beds": self.beds,
            "baths": self.baths,
            "sqft": self.sqft,
            "type": self.type,
            "yearBuilt": self.year_built,
            "legalDescription": self.legal_description,
            "lotArea": self.lot_area,
            "lotType": self.lot_type,
            "sourceUrl": self.source_url,
        }


@dataclass(frozen=True)
class SaleInfo:
    """One sale. ``date`` is display text ("June 2023"), ``date_iso`` the raw date."""
    date: str = ""
    date_iso: str = ""
    amount: float = 0
    owner_name: str = ""
    owners: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "dateIso": self.date_iso,
            "amount": self.amount,
            "ownerName": self.owner_name,
            "owners": list(self.owners),
        }


@dataclass(frozen=True)
class TaxInfo:
    year: int = 0
    assessed_value: float = 0

    def to_dict(self) -> Dict:
        return {"year": self.year, "assessedValue": self.assessed_value}


@dataclass(frozen=True)
class Features:
    interior: List[str] = field(default_factory=list)
    exterior: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class LayoutSummary:
    first_floor: List[Dict] = field(default_factory=list)
    second_floor: List[Dict] = field(default_factory=list)
    other: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "firstFloorLayouts": self.first_floor,
            "secondFloorLayouts": self.second_floor,
            "otherLayouts": self.other,
        }


@dataclass(frozen=True)
class CarouselImage:
    ipfs_url: str
    name: str = ""
    document_type: str = ""
    file_format: str = ""

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class DataSource:
    type: str
    url: str = ""
    host: str = ""
    description: str = ""

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class PropertyRecord:
    """Everything the fact sheet template needs for one property."""
    property_id: str
    property: PropertyInfo = field(default_factory=PropertyInfo)
    sales: List[SaleInfo] = field(default_factory=list)
    taxes: List[TaxInfo] = field(default_factory=list)
    features: Features = field(default_factory=Features)
    structure: Optional[Dict[str, Any]] = None
    utility: Optional[Dict[str, Any]] = None
    layouts: LayoutSummary = field(default_factory=LayoutSummary)
    carousel_images: List[CarouselImage] = field(default_factory=list)
    data_sources: List[DataSource] = field(default_factory=list)
    data_label: str = "Seed"

    def to_dict(self) -> Dict:
        return {
            "propertyId": self.property_id,
            "property": self.property.to_dict(),
            "sales": [s.to_dict() for s in self.sales],
            "taxes": [t.to_dict() for t in self.taxes],
            "features": self.features.to_dict(),
            "structure": self.structure,
            "utility": self.utility,
            "layouts": self.layouts.to_dict(),
            "carouselImages": [i.to_dict() for i in self.carousel_images],
            "dataSources": [d.to_dict() for d in self.data_sources],
            "dataLabel": self.data_label,
        }
