from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd
import requests

try:
    from .config import Config
    from .query_builder import build_flow_query
except ImportError:
    from config import Config
    from query_builder import build_flow_query

logger = logging.getLogger(__name__)

EDGE_COLUMNS = ["source", "dest", "bytes"]

SOURCE_CANDIDATES = ["source", "src", "source_ip", "source.ip"]
DEST_CANDIDATES = ["dest", "destination", "dst", "destination_ip", "destination.ip"]
BYTES_CANDIDATES = ["bytes", "value", "network_bytes", "network.bytes"]


def _empty_edges() -> pd.DataFrame:
    return pd.DataFrame(columns=EDGE_COLUMNS)


def _bucket_key(bucket: dict) -> str:
    key = bucket.get("key_as_string", bucket.get("key"))
    if key is None:
        raise ValueError(f"Aggregation bucket without key: {bucket!r}")
    return str(key)


def parse_flow_buckets(payload: dict) -> pd.DataFrame:
    """Flatten source_nodes -> destinations -> bytes buckets into an edge table."""
    try:
        buckets = payload["aggregations"]["source_nodes"]["buckets"]
    except (KeyError, TypeError) as exc:
        raise ValueError("Search response missing aggregations.source_nodes.buckets") from exc

    rows = []
    for bucket in buckets:
        source = _bucket_key(bucket)
        dest_buckets = bucket.get("destinations", {}).get("buckets", [])
        for dest_bucket in dest_buckets:
            value = (dest_bucket.get("bytes") or {}).get("value")
            rows.append({
                "source": source,
                "dest": _bucket_key(dest_bucket),
                "bytes": float(value) if value is not None else 0.0,
            })

    if not rows:
        return _empty_edges()
    return pd.DataFrame(rows, columns=EDGE_COLUMNS)


def fetch_flow_edges(config: Config, networks: Iterable[str], window: str) -> pd.DataFrame:
    networks = list(networks)
    query = build_flow_query(networks, window, terms_size=config.flow_terms_size)
    url = f"{config.es_url}/{config.es_index}/_search"
    auth = None
    if config.es_username and config.es_password:
        auth = (config.es_username, config.es_password)

    logger.info("Querying %s (window=%s, networks=%s)", url, window, ",".join(networks) or "any")
    response = requests.post(
        url,
        json=query,
        auth=auth,
        headers={"Accept": "application/json"},
        timeout=config.es_timeout,
        verify=config.es_verify_tls,
    )
    response.raise_for_status()
    edges = parse_flow_buckets(response.json())
    logger.info("Fetched %d flow edges", len(edges))
    return edges


def _resolve_column(df: pd.DataFrame, candidates: list[str]) -> str:
    lower_map = {str(col).lower(): col for col in df.columns}
    for candidate in candidates:
        if candidate in df.columns:
            return candidate
        if candidate.lower() in lower_map:
            return lower_map[candidate.lower()]
    raise ValueError(f"Missing required column. Tried: {candidates}")


def _normalize_edges(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return _empty_edges()
    source_col = _resolve_column(df, SOURCE_CANDIDATES)
    dest_col = _resolve_column(df, DEST_CANDIDATES)
    bytes_col = _resolve_column(df, BYTES_CANDIDATES)
    normalized = pd.DataFrame(
        {
            "source": df[source_col].astype(str).str.strip(),
            "dest": df[dest_col].astype(str).str.strip(),
            "bytes": pd.to_numeric(df[bytes_col], errors="coerce").fillna(0.0).astype(float),
        }
    )
    return normalized.reset_index(drop=True)


def load_edges_file(path: str) -> pd.DataFrame:
    """Load an offline edge list from CSV or JSON."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Edges file not found: {path}")
    if file_path.suffix.lower() == ".json":
        with open(file_path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if isinstance(payload, dict) and "data" in payload:
            df = pd.DataFrame(payload["data"])
        elif isinstance(payload, list):
            df = pd.DataFrame(payload)
        else:
            raise ValueError("Unsupported edges JSON file structure.")
    else:
        df = pd.read_csv(file_path)
    return _normalize_edges(df)


def edges_to_matrix(edges: Optional[pd.DataFrame]) -> Tuple[list[str], np.ndarray]:
    """
    Index nodes by first appearance and build the N x N byte matrix.

    Row order of the edge table decides node order: each row contributes its
    source, then its destination. Duplicate (source, dest) rows are summed.
    """
    if edges is None or edges.empty:
        return [], np.zeros((0, 0))

    nodes: dict[str, int] = {}
    for row in edges.itertuples(index=False):
        for address in (row.source, row.dest):
            if address not in nodes:
                nodes[address] = len(nodes)

    matrix = np.zeros((len(nodes), len(nodes)))
    for row in edges.itertuples(index=False):
        matrix[nodes[row.source], nodes[row.dest]] += float(row.bytes)
    return list(nodes), matrix
