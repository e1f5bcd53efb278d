"""Error taxonomy for fact sheet builds.

Only PropertyLoadError is meant to cross the property assembler. Parse
failures of single documents are logged and absorbed by the store.
"""

from pathlib import Path
from typing import Optional


class FactSheetError(Exception):
    """Base class for fact sheet errors."""


class ConfigError(FactSheetError):
    """Missing or invalid build configuration."""


class DocumentParseError(FactSheetError):
    """A JSON document in a property directory could not be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path.name}: {reason}")


class PropertyLoadError(FactSheetError):
    """A property directory is missing or unreadable."""

    def __init__(self, property_id: str, path: Optional[Path] = None, reason: str = ""):
        self.property_id = property_id
        self.path = path
        self.reason = reason
        message = f"Could not load property {property_id}"
        if path is not None:
            message += f" from {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
