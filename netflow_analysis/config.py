from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import os
from pathlib import Path
from typing import Optional

import matplotlib
import pytz
from dotenv import load_dotenv

try:
    from .db_path import get_db_path
except ImportError:
    from db_path import get_db_path

# =============================================================================
# Default Configuration (can be overridden via .env)
# =============================================================================
DEFAULT_ES_URL = "http://localhost:9200"
DEFAULT_ES_INDEX = "filebeat-*"
DEFAULT_ES_TIMEOUT = 60
DEFAULT_ES_VERIFY_TLS = True

# Query defaults
DEFAULT_FLOW_WINDOW = "3h"  # Elasticsearch date math, e.g. 15m, 1h, 24h
DEFAULT_FLOW_NETWORKS = "10.0.0.0/8"  # Comma-separated CIDRs
DEFAULT_FLOW_TERMS_SIZE = 100  # Max source and destination buckets

# Output defaults
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_OUTPUT_FORMAT = "png"  # "png" or "svg"
DEFAULT_OUTPUT_SIZE_INCHES = 24.0
DEFAULT_OUTPUT_DPI = 100
DEFAULT_PLOT_TITLE = "Network Traffic Flow Between IPs"
DEFAULT_COLOR_POLICY = "index"  # "index" or "colormap"
DEFAULT_COLORMAP_NAME = "tab20"
DEFAULT_SELF_FLOW_POLICY = "skip"  # "skip" or "loop"
DEFAULT_OUTPUT_TZ = "UTC"
DEFAULT_CACHE_SNAPSHOTS = True
DEFAULT_EXPORT_CSV = False

OUTPUT_FORMATS = ("png", "svg")
COLOR_POLICIES = ("index", "colormap")


def _parse_bool(value: Optional[str], fallback: bool) -> bool:
    if value is None or value == "":
        return fallback
    return value.strip().lower() in ("true", "1", "yes")


def _parse_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_path(root_dir: Path, value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    path = Path(value)
    if not path.is_absolute():
        path = root_dir / path
    return path


def _choice(name: str, value: str, choices: tuple) -> str:
    value = value.strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {choices}, got {value!r}")
    return value


def _colormap_name(value: str) -> str:
    value = value.strip()
    if value not in matplotlib.colormaps:
        raise ValueError(f"COLORMAP_NAME is not a matplotlib colormap: {value!r}")
    return value


@dataclass(frozen=True)
class Config:
    root_dir: Path
    output_dir: Path
    db_path: Path
    es_url: str
    es_index: str
    es_username: Optional[str]
    es_password: Optional[str]
    es_verify_tls: bool
    es_timeout: int
    flow_window: str
    flow_networks: list[str]
    flow_terms_size: int
    output_format: str
    output_size_inches: float
    output_dpi: int
    plot_title: str
    color_policy: str
    colormap_name: str
    self_flow_policy: str
    output_tz: str
    cache_snapshots: bool
    export_csv: bool

    def now(self) -> datetime:
        """Current time in the configured output timezone."""
        return datetime.now(pytz.timezone(self.output_tz))


def load_config() -> Config:
    root_dir = Path(__file__).resolve().parent
    project_root = root_dir.parent
    load_dotenv(project_root / ".env")

    output_tz = os.getenv("OUTPUT_TZ", DEFAULT_OUTPUT_TZ)
    try:
        pytz.timezone(output_tz)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown OUTPUT_TZ: {output_tz}") from exc

    output_dir = _resolve_path(project_root, os.getenv("OUTPUT_DIR", DEFAULT_OUTPUT_DIR))
    db_path = _resolve_path(project_root, os.getenv("NETFLOW_DB_PATH")) or get_db_path()

    return Config(
        root_dir=root_dir,
        output_dir=output_dir,
        db_path=db_path,
        es_url=os.getenv("ES_URL", DEFAULT_ES_URL).rstrip("/"),
        es_index=os.getenv("ES_INDEX", DEFAULT_ES_INDEX),
        es_username=os.getenv("ES_USERNAME") or None,
        es_password=os.getenv("ES_PASSWORD") or None,
        es_verify_tls=_parse_bool(os.getenv("ES_VERIFY_TLS"), DEFAULT_ES_VERIFY_TLS),
        es_timeout=int(os.getenv("ES_TIMEOUT", str(DEFAULT_ES_TIMEOUT))),
        flow_window=os.getenv("FLOW_WINDOW", DEFAULT_FLOW_WINDOW),
        flow_networks=_parse_csv(os.getenv("FLOW_NETWORKS", DEFAULT_FLOW_NETWORKS)),
        flow_terms_size=int(os.getenv("FLOW_TERMS_SIZE", str(DEFAULT_FLOW_TERMS_SIZE))),
        output_format=_choice("OUTPUT_FORMAT", os.getenv("OUTPUT_FORMAT", DEFAULT_OUTPUT_FORMAT), OUTPUT_FORMATS),
        output_size_inches=float(os.getenv("OUTPUT_SIZE_INCHES", str(DEFAULT_OUTPUT_SIZE_INCHES))),
        output_dpi=int(os.getenv("OUTPUT_DPI", str(DEFAULT_OUTPUT_DPI))),
        plot_title=os.getenv("PLOT_TITLE", DEFAULT_PLOT_TITLE),
        color_policy=_choice("COLOR_POLICY", os.getenv("COLOR_POLICY", DEFAULT_COLOR_POLICY), COLOR_POLICIES),
        colormap_name=_colormap_name(os.getenv("COLORMAP_NAME", DEFAULT_COLORMAP_NAME)),
        self_flow_policy=_choice(
            "SELF_FLOW_POLICY", os.getenv("SELF_FLOW_POLICY", DEFAULT_SELF_FLOW_POLICY), ("skip", "loop")
        ),
        output_tz=output_tz,
        cache_snapshots=_parse_bool(os.getenv("CACHE_SNAPSHOTS"), DEFAULT_CACHE_SNAPSHOTS),
        export_csv=_parse_bool(os.getenv("EXPORT_CSV"), DEFAULT_EXPORT_CSV),
    )
