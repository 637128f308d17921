"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from netflow_analysis import config as config_module
from netflow_analysis.config import load_config

ENV_VARS = [
    "ES_URL", "ES_INDEX", "ES_USERNAME", "ES_PASSWORD", "ES_VERIFY_TLS", "ES_TIMEOUT",
    "FLOW_WINDOW", "FLOW_NETWORKS", "FLOW_TERMS_SIZE", "OUTPUT_DIR", "OUTPUT_FORMAT",
    "OUTPUT_SIZE_INCHES", "OUTPUT_DPI", "PLOT_TITLE", "COLOR_POLICY", "COLORMAP_NAME",
    "SELF_FLOW_POLICY", "OUTPUT_TZ", "CACHE_SNAPSHOTS", "EXPORT_CSV",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NETFLOW_DB_PATH", str(tmp_path / "cache.duckdb"))
    monkeypatch.setattr(config_module, "load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    config = load_config()
    assert config.es_url == "http://localhost:9200"
    assert config.es_index == "filebeat-*"
    assert config.es_username is None
    assert config.flow_window == "3h"
    assert config.flow_networks == ["10.0.0.0/8"]
    assert config.flow_terms_size == 100
    assert config.output_format == "png"
    assert config.output_size_inches == 24.0
    assert config.plot_title == "Network Traffic Flow Between IPs"
    assert config.color_policy == "index"
    assert config.self_flow_policy == "skip"
    assert config.cache_snapshots is True
    assert config.export_csv is False
    assert config.db_path == tmp_path / "cache.duckdb"
    assert config.output_dir.name == "output"


def test_overrides(clean_env, tmp_path):
    clean_env.setenv("ES_URL", "https://search.example:443/")
    clean_env.setenv("ES_USERNAME", "reader")
    clean_env.setenv("ES_PASSWORD", "pw")
    clean_env.setenv("ES_VERIFY_TLS", "no")
    clean_env.setenv("FLOW_NETWORKS", "10.0.0.0/8, 192.168.0.0/16")
    clean_env.setenv("OUTPUT_FORMAT", "SVG")
    clean_env.setenv("OUTPUT_DIR", str(tmp_path / "plots"))
    clean_env.setenv("COLOR_POLICY", "colormap")
    clean_env.setenv("SELF_FLOW_POLICY", "loop")
    clean_env.setenv("EXPORT_CSV", "1")
    config = load_config()
    assert config.es_url == "https://search.example:443"
    assert config.es_username == "reader"
    assert config.es_verify_tls is False
    assert config.flow_networks == ["10.0.0.0/8", "192.168.0.0/16"]
    assert config.output_format == "svg"
    assert config.output_dir == Path(tmp_path / "plots")
    assert config.color_policy == "colormap"
    assert config.self_flow_policy == "loop"
    assert config.export_csv is True


@pytest.mark.parametrize(
    "name, value",
    [("OUTPUT_FORMAT", "gif"), ("COLOR_POLICY", "rainbow"), ("SELF_FLOW_POLICY", "drop"),
     ("OUTPUT_TZ", "Mars/Base"), ("COLORMAP_NAME", "not-a-cmap")],
)
def test_invalid_values(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ValueError):
        load_config()


def test_now_is_timezone_aware(clean_env):
    clean_env.setenv("OUTPUT_TZ", "US/Eastern")
    assert load_config().now().tzinfo is not None


def test_colormap_name_is_kept(clean_env):
    clean_env.setenv("COLORMAP_NAME", " viridis ")
    assert load_config().colormap_name == "viridis"
