"""Per-property static assets and manifest.json."""

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict

from factsheet.build.render import ASSETS_DIR, SCRIPT, STYLESHEET
from factsheet.config import VERSION, BuildOptions
from factsheet.ipld.record import PropertyRecord

logger = logging.getLogger(__name__)

GENERATOR = "factsheet"


def copy_assets(options: BuildOptions, record: PropertyRecord, property_out: Path) -> int:
    """Copy stylesheet/script (unless inlined) and local carousel photos.

    Returns the number of files copied.
    """
    copied = 0
    if not options.inline_css:
        css_dir = property_out / "css"
        css_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(ASSETS_DIR / STYLESHEET, css_dir / STYLESHEET)
        copied += 1
    if not options.inline_js:
        js_dir = property_out / "js"
        js_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(ASSETS_DIR / SCRIPT, js_dir / SCRIPT)
        copied += 1

    # Only photos that the record references and that exist next to the JSON
    source_dir = options.input_dir / record.property_id
    for image in record.carousel_images:
        filename = Path(image.ipfs_url).name
        src = source_dir / filename
        if filename and src.is_file():
            shutil.copyfile(src, property_out / filename)
            copied += 1
            logger.debug("Copied carousel image %s", filename)

    return copied


def build_manifest(options: BuildOptions, record: PropertyRecord) -> Dict:
    return {
        "propertyId": record.property_id,
        "generatedAt": datetime.now().isoformat(timespec="seconds"),
        "generator": GENERATOR,
        "version": VERSION,
        "domain": options.domain,
        "options": {
            "inlineCss": options.inline_css,
            "inlineJs": options.inline_js,
        },
        "property": {
            "address": record.property.address,
            "details": record.property.to_dict(),
            "salesCount": len(record.sales),
            "taxCount": len(record.taxes),
            "dataSourcesCount": len(record.data_sources),
            "dataLabel": record.data_label,
        },
    }


def write_manifest(options: BuildOptions, record: PropertyRecord, property_out: Path) -> Path:
    path = property_out / "manifest.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_manifest(options, record), f, indent=2)
    logger.debug("Created manifest.json for %s", record.property_id)
    return path
