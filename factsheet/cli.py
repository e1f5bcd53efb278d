"""Fact sheet generator CLI."""

import logging
from pathlib import Path
from typing import Optional

import click

from factsheet.build.engine import build_all, discover_properties
from factsheet.config import (
    DEFAULT_LOG_FILE,
    DEFAULT_PORT,
    DEV_OUTPUT_DIR,
    build_options_from,
    create_default_config,
    load_config,
    merge_with_cli_options,
)
from factsheet.errors import ConfigError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
logger = logging.getLogger(__name__)


def _set_verbosity(verbose: bool, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.INFO
    logging.getLogger().setLevel(level)


def _attach_log_file(path: Path) -> logging.Handler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.getLogger().addHandler(handler)
    return handler


@click.group()
def main():
    """Static property fact sheets from IPLD-linked JSON."""


@main.command()
@click.option("-i", "--input", "input_dir", default=None, help="Directory of property subdirectories.")
@click.option("-o", "--output", "output_dir", default=None, help="Output directory for the generated sites.")
@click.option("-d", "--domain", default=None, help="Public base URL the sites are served from.")
@click.option("--inline-css", is_flag=True, help="Embed the stylesheet in each page.")
@click.option("--inline-js", is_flag=True, help="Embed the script in each page.")
@click.option("-p", "--property", "property_ids", multiple=True, help="Build only these property IDs.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors.")
@click.option("--ci", is_flag=True, help="Exit non-zero if any property fails.")
@click.option("--log-file", default=DEFAULT_LOG_FILE, show_default=True, help="Build log file.")
@click.option("--no-log-file", is_flag=True, help="Do not write a build log file.")
def generate(
    input_dir: Optional[str],
    output_dir: Optional[str],
    domain: Optional[str],
    inline_css: bool,
    inline_js: bool,
    property_ids,
    verbose: bool,
    quiet: bool,
    ci: bool,
    log_file: str,
    no_log_file: bool,
):
    """Generate a fact sheet site for every property in the input directory.

    Each property subdirectory becomes <output>/<id>/index.html plus its
    manifest.json and assets. Failing properties are reported and skipped.
    """
    merged = merge_with_cli_options(load_config(), {
        "input": input_dir,
        "output": output_dir,
        "domain": domain,
        "inline_css": inline_css or None,
        "inline_js": inline_js or None,
        "verbose": verbose or None,
    })
    _set_verbosity(bool(merged.get("verbose")), quiet)

    try:
        options = build_options_from(merged)
        ids = list(property_ids) or discover_properties(options.input_dir)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    handler = None if no_log_file else _attach_log_file(Path(log_file))
    try:
        summary = build_all(options, ids)
    finally:
        if handler is not None:
            logging.getLogger().removeHandler(handler)
            handler.close()

    click.echo(
        f"Done! {summary['built']} of {summary['total']} fact sheets generated "
        f"in {summary['elapsed']}s -> {options.output_dir}"
    )
    if summary["errors"]:
        click.echo(f"{summary['errors']} failed:", err=True)
        for pid in summary["error_ids"]:
            click.echo(f"  {pid}: {summary['error_messages'].get(pid, '')}", err=True)
        if handler is not None:
            click.echo(f"See {log_file} for details.", err=True)
        if ci:
            raise SystemExit(1)


@main.command()
@click.option("-i", "--input", "input_dir", default=None, help="Directory of property subdirectories.")
@click.option("-p", "--port", type=int, default=None, help=f"Port (default {DEFAULT_PORT}).")
@click.option("-d", "--domain", default=None, help="Base URL used in canonical links.")
@click.option("--no-open", is_flag=True, help="Do not open a browser.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def dev(input_dir: Optional[str], port: Optional[int], domain: Optional[str], no_open: bool, verbose: bool):
    """Serve fact sheets locally, rebuilding a property on every request."""
    import threading
    import webbrowser

    import uvicorn

    from factsheet.web.app import create_app

    merged = merge_with_cli_options(load_config(), {
        "input": input_dir,
        "output": str(DEV_OUTPUT_DIR),
        "port": port,
        "domain": domain,
        "open": False if no_open else None,
        "verbose": verbose or None,
    })
    _set_verbosity(bool(merged.get("verbose")))

    try:
        options = build_options_from(merged)
        property_ids = discover_properties(options.input_dir)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    port = int(merged.get("port") or DEFAULT_PORT)
    url = f"http://127.0.0.1:{port}"
    click.echo(f"Serving {len(property_ids)} properties from {options.input_dir} at {url}")
    click.echo("Press Ctrl+C to stop.")

    if merged.get("open") is not False:
        target = f"{url}/{property_ids[0]}/" if len(property_ids) == 1 else url
        threading.Timer(1.0, lambda: webbrowser.open(target)).start()
    uvicorn.run(create_app(options), host="127.0.0.1", port=port, log_level="warning")


@main.command()
def init():
    """Write a default .factsheetrc.json in the current directory."""
    try:
        path = create_default_config()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Created {path.name}. Edit it to set your input/output directories.")
