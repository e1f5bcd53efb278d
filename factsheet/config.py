import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from factsheet.errors import ConfigError

logger = logging.getLogger(__name__)

# Load .env from the working directory (project being built, not this package)
load_dotenv(Path.cwd() / ".env")

# Bundled templates
PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"

# Defaults, overridable from the environment
DEFAULT_INPUT_DIR = Path(os.getenv("FACTSHEET_INPUT", "./property-data"))
DEFAULT_OUTPUT_DIR = Path(os.getenv("FACTSHEET_OUTPUT", "./dist"))
DEFAULT_DOMAIN = os.getenv("FACTSHEET_DOMAIN", "https://elephant.xyz/homes/public").strip()
DEFAULT_PORT = int(os.getenv("FACTSHEET_PORT", "3000"))
DEV_OUTPUT_DIR = Path(".factsheet-dev")
DEFAULT_LOG_FILE = "fact-sheet-build.log"
VERSION = "1.0.0"

# Searched in this order; first readable one wins
CONFIG_FILES = (
    ".factsheetrc.json",
    ".factsheetrc",
    "factsheet.config.json",
)

DEFAULT_CONFIG: Dict = {
    "input": "./property-data",
    "output": "./dist",
    "dev": {
        "port": 3000,
        "open": True,
        "verbose": False,
    },
    "build": {
        "domain": "https://elephant.xyz/homes/public",
        "inlineCss": False,
        "inlineJs": False,
    },
}


@dataclass
class BuildOptions:
    """Options shared by the batch driver, renderer and dev server."""
    input_dir: Path
    output_dir: Path
    domain: str = DEFAULT_DOMAIN
    inline_css: bool = False
    inline_js: bool = False


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the first config file present in cwd, or None."""
    base = cwd or Path.cwd()
    for name in CONFIG_FILES:
        path = base / name
        if path.is_file():
            return path
    return None


def load_config(cwd: Optional[Path] = None) -> Optional[Dict]:
    """Load the project config file.

    Unreadable or malformed files are logged and skipped so that the next
    candidate (or no config at all) is used instead.
    """
    base = cwd or Path.cwd()
    for name in CONFIG_FILES:
        path = base / name
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error reading config file %s: %s", name, e)
            continue
        if not isinstance(data, dict):
            logger.error("Config file %s must contain a JSON object", name)
            continue
        logger.debug("Loaded config from %s", path)
        return data
    return None


def merge_with_cli_options(config: Optional[Dict], cli_options: Dict) -> Dict:
    """Fill CLI options left as None from the config. CLI values win."""
    merged = dict(cli_options)
    if not config:
        return merged

    def _fill(key: str, value) -> None:
        if value is not None and merged.get(key) is None:
            merged[key] = value

    _fill("input", config.get("input"))
    _fill("output", config.get("output"))

    dev = config.get("dev") or {}
    _fill("port", dev.get("port"))
    _fill("open", dev.get("open"))
    if dev.get("verbose") and not merged.get("verbose"):
        merged["verbose"] = True

    build = config.get("build") or {}
    _fill("domain", build.get("domain"))
    _fill("inline_css", build.get("inlineCss"))
    _fill("inline_js", build.get("inlineJs"))

    return merged


def create_default_config(cwd: Optional[Path] = None) -> Path:
    """Write .factsheetrc.json with default settings. Returns its path."""
    base = cwd or Path.cwd()
    existing = find_config_file(base)
    if existing is not None:
        raise ConfigError(f"Config file already exists: {existing.name}")
    path = base / CONFIG_FILES[0]
    path.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n", encoding="utf-8")
    logger.info("Created %s", path)
    return path


def build_options_from(merged: Dict) -> BuildOptions:
    """Turn merged CLI/config options into BuildOptions with absolute paths."""
    if not merged.get("input") or not merged.get("output"):
        raise ConfigError(
            "Input and output directories are required. "
            "Use -i and -o options or set them in a config file."
        )
    return BuildOptions(
        input_dir=Path(merged["input"]).resolve(),
        output_dir=Path(merged["output"]).resolve(),
        domain=merged.get("domain") or DEFAULT_DOMAIN,
        inline_css=bool(merged.get("inline_css")),
        inline_js=bool(merged.get("inline_js")),
    )
