"""
Search request body for source -> destination byte totals.

Shape:
    size 0, bool.must [network filter, time window],
    aggs source_nodes (terms source.ip)
         -> destinations (terms destination.ip)
            -> bytes (sum network.bytes)
"""
from __future__ import annotations

import re
from typing import Iterable

try:
    from .cidr import cidr_to_range
except ImportError:
    from cidr import cidr_to_range

WINDOW_PATTERN = re.compile(r"^\d+[smhdwMy]$")

SOURCE_FIELD = "source.ip"
DEST_FIELD = "destination.ip"
BYTES_FIELD = "network.bytes"
TIMESTAMP_FIELD = "@timestamp"


def validate_window(window: str) -> str:
    if not window or not WINDOW_PATTERN.match(window.strip()):
        raise ValueError(f"Invalid time window {window!r}; expected e.g. 15m, 3h, 7d")
    return window.strip()


def _network_clause(cidr: str) -> dict:
    start, end = cidr_to_range(cidr)
    return {
        "bool": {
            "must": [
                {"range": {SOURCE_FIELD: {"gte": start, "lte": end}}},
                {"range": {DEST_FIELD: {"gte": start, "lte": end}}},
            ]
        }
    }


def build_flow_query(networks: Iterable[str], window: str, terms_size: int = 100) -> dict:
    if terms_size <= 0:
        raise ValueError(f"terms_size must be positive, got {terms_size}")
    window = validate_window(window)

    conditions = []
    clauses = [_network_clause(cidr) for cidr in networks]
    if clauses:
        # Traffic may fall inside any of the requested networks.
        conditions.append({"bool": {"should": clauses, "minimum_should_match": 1}})
    conditions.append({
        "range": {TIMESTAMP_FIELD: {"gte": f"now-{window}", "lte": "now"}}
    })

    return {
        "size": 0,
        "query": {"bool": {"must": conditions}},
        "aggs": {
            "source_nodes": {
                "terms": {"field": SOURCE_FIELD, "size": terms_size},
                "aggs": {
                    "destinations": {
                        "terms": {"field": DEST_FIELD, "size": terms_size},
                        "aggs": {
                            "bytes": {"sum": {"field": BYTES_FIELD}},
                        },
                    },
                },
            },
        },
    }
