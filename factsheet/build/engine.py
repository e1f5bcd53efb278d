"""Batch build: property directories -> static fact sheet sites."""

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

from factsheet.build.assets import copy_assets, write_manifest
from factsheet.build.render import render_property
from factsheet.config import BuildOptions
from factsheet.errors import ConfigError
from factsheet.ipld.assemble import assemble
from factsheet.ipld.record import PropertyRecord

logger = logging.getLogger(__name__)


def discover_properties(input_dir: Path) -> List[str]:
    """Sorted names of the property subdirectories of input_dir."""
    if not input_dir.is_dir():
        raise ConfigError(f"Input directory does not exist: {input_dir}")
    return sorted(p.name for p in input_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def build_property(options: BuildOptions, property_id: str) -> PropertyRecord:
    """Assemble, render and write one property. Returns the record.

    Raises PropertyLoadError (or anything the renderer raises); the batch
    loop decides whether that is fatal.
    """
    record = assemble(options.input_dir / property_id, property_id)

    property_out = options.output_dir / property_id
    property_out.mkdir(parents=True, exist_ok=True)

    html = render_property(record, options)
    (property_out / "index.html").write_text(html, encoding="utf-8")

    copy_assets(options, record, property_out)
    write_manifest(options, record, property_out)
    logger.debug("Built %s -> %s", property_id, property_out)
    return record


def build_all(options: BuildOptions, property_ids: Optional[List[str]] = None) -> Dict:
    """Build every property (or just property_ids).

    A failing property is logged and counted; the rest still build.

    Returns:
        Summary dict: {total, built, errors, error_ids, error_messages, elapsed}
    """
    if property_ids is None:
        property_ids = discover_properties(options.input_dir)

    total = len(property_ids)
    logger.info("Building %d properties: %s -> %s", total, options.input_dir, options.output_dir)
    options.output_dir.mkdir(parents=True, exist_ok=True)

    built = 0
    error_ids: List[str] = []
    error_messages: Dict[str, str] = {}
    start = time.time()

    for i, property_id in enumerate(property_ids):
        try:
            build_property(options, property_id)
            built += 1
        except Exception as e:
            logger.exception("Failed to build %s", property_id)
            error_ids.append(property_id)
            error_messages[property_id] = str(e)

        if (i + 1) % 100 == 0:
            logger.info("Progress: %d / %d", i + 1, total)

    elapsed = time.time() - start
    logger.info("Done: %d built, %d errors in %.1fs", built, len(error_ids), elapsed)

    return {
        "total": total,
        "built": built,
        "errors": len(error_ids),
        "error_ids": error_ids,
        "error_messages": error_messages,
        "elapsed": round(elapsed, 1),
    }
