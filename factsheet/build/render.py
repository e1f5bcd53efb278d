"""Jinja2 renderer for a single property fact sheet."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from factsheet.config import TEMPLATES_DIR, BuildOptions
from factsheet.ipld.normalize import format_month_year, title_case, to_number
from factsheet.ipld.record import PropertyRecord

logger = logging.getLogger(__name__)

PROPERTY_TEMPLATE = "property.html"
ASSETS_DIR = TEMPLATES_DIR / "assets"
STYLESHEET = "style.css"
SCRIPT = "property.js"


def format_currency(value: Any) -> Any:
    number = to_number(value)
    if number is None:
        return value
    return f"${number:,.0f}"


def format_number(value: Any) -> Any:
    number = to_number(value)
    if number is None:
        return value
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,}"


@lru_cache(maxsize=4)
def get_environment(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["currency"] = format_currency
    env.filters["number"] = format_number
    env.filters["month_year"] = format_month_year
    env.filters["title"] = title_case
    return env


def _asset_text(name: str) -> str:
    return (ASSETS_DIR / name).read_text(encoding="utf-8")


def render_property(record: PropertyRecord, options: BuildOptions) -> str:
    """Render index.html for one property."""
    env = get_environment()
    template = env.get_template(PROPERTY_TEMPLATE)
    data = record.to_dict()
    return template.render(
        **data,
        domain=options.domain.rstrip("/"),
        inline_css=_asset_text(STYLESHEET) if options.inline_css else None,
        inline_js=_asset_text(SCRIPT) if options.inline_js else None,
        stylesheet=f"css/{STYLESHEET}",
        script=f"js/{SCRIPT}",
    )
