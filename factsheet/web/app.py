"""Dev preview server: rebuilds a property on every page request."""

import html
import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse, HTMLResponse

from factsheet.build.engine import build_property, discover_properties
from factsheet.config import BuildOptions
from factsheet.errors import ConfigError, PropertyLoadError

logger = logging.getLogger(__name__)

NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def _index_page(property_ids) -> str:
    items = "\n".join(
        f'    <li><a href="/{html.escape(pid)}/">{html.escape(pid)}</a></li>'
        for pid in property_ids
    )
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head><meta charset=\"utf-8\">"
        "<title>Fact sheets</title></head>\n<body>\n"
        f"  <h1>Fact sheets ({len(property_ids)})</h1>\n  <ul>\n{items}\n  </ul>\n"
        "</body>\n</html>\n"
    )


def create_app(options: BuildOptions) -> FastAPI:
    """FastAPI app serving fact sheets built on demand into options.output_dir."""
    app = FastAPI(title="Fact Sheet Preview")
    app.state.options = options

    # -----------------------------------------------------------------------
    # Pages
    # -----------------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    def index():
        try:
            property_ids = discover_properties(options.input_dir)
        except ConfigError as e:
            raise HTTPException(500, str(e))
        return HTMLResponse(content=_index_page(property_ids), headers=NO_CACHE)

    @app.get("/{property_id}/", response_class=HTMLResponse)
    def property_page(property_id: str):
        _check_id(property_id)
        try:
            build_property(options, property_id)
        except PropertyLoadError as e:
            raise HTTPException(404, str(e))
        logger.info("Rebuilt %s", property_id)
        content = (options.output_dir / property_id / "index.html").read_text(encoding="utf-8")
        return HTMLResponse(content=content, headers=NO_CACHE)

    @app.get("/{property_id}/{asset_path:path}")
    def property_asset(property_id: str, asset_path: str):
        """Stylesheet, script, photos and manifest from the last build."""
        _check_id(property_id)
        base = (options.output_dir / property_id).resolve()
        path = (base / asset_path).resolve()
        if base not in path.parents or not path.is_file():
            raise HTTPException(404, f"Not found: {property_id}/{asset_path}")
        return FileResponse(path, headers=NO_CACHE)

    return app


def _check_id(property_id: str) -> None:
    if property_id in (".", "..") or Path(property_id).name != property_id:
        raise HTTPException(404, f"Property not found: {property_id}")
