from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

from pathlib import Path

import pytest

from netflow_analysis.config import Config


@pytest.fixture
def make_config(tmp_path):
    """Build a Config without touching the environment."""

    def _make(**overrides) -> Config:
        values = dict(
            root_dir=Path(tmp_path),
            output_dir=Path(tmp_path) / "output",
            db_path=Path(tmp_path) / "netflow.duckdb",
            es_url="http://es.test:9200",
            es_index="filebeat-*",
            es_username="reader",
            es_password="secret",
            es_verify_tls=True,
            es_timeout=30,
            flow_window="3h",
            flow_networks=["10.0.0.0/8"],
            flow_terms_size=100,
            output_format="svg",
            output_size_inches=2.0,
            output_dpi=50,
            plot_title="Network Traffic Flow Between IPs",
            color_policy="index",
            colormap_name="tab20",
            self_flow_policy="skip",
            output_tz="UTC",
            cache_snapshots=True,
            export_csv=False,
        )
        values.update(overrides)
        return Config(**values)

    return _make
