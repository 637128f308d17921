from __future__ import annotations

"""
Fetch source -> destination byte totals, cache them, and draw a chord diagram.

Edge sources, first match wins: --edges-file, --from-cache, live search.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

try:
    from .chord_renderer import DiagramInputError
    from .cidr import parse_network_filters
    from .config import load_config
    from .db import get_connection, init_db, load_latest_snapshot, save_snapshot
    from .fetch_flows import edges_to_matrix, fetch_flow_edges, load_edges_file
    from .flow_renderer import render_flow_diagram
    from .query_builder import validate_window
except ImportError:
    from chord_renderer import DiagramInputError
    from cidr import parse_network_filters
    from config import load_config
    from db import get_connection, init_db, load_latest_snapshot, save_snapshot
    from fetch_flows import edges_to_matrix, fetch_flow_edges, load_edges_file
    from flow_renderer import render_flow_diagram
    from query_builder import validate_window


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render network traffic flow between IPs as a chord diagram")
    parser.add_argument(
        "--window",
        type=str,
        default=None,
        help="Time window for data, e.g. 15m, 1h, 24h (default: FLOW_WINDOW)",
    )
    parser.add_argument(
        "--network",
        type=str,
        default=None,
        help="Comma-separated CIDR filter, e.g. '10.0.0.0/8,192.168.0.0/16' (default: FLOW_NETWORKS)",
    )
    parser.add_argument(
        "--edges-file",
        type=str,
        default=None,
        help="Render a CSV/JSON edge list instead of querying",
    )
    parser.add_argument(
        "--from-cache",
        action="store_true",
        help="Render the latest cached snapshot instead of querying",
    )
    parser.add_argument(
        "--format",
        type=str,
        default=None,
        choices=["png", "svg"],
        help="Output format (default: OUTPUT_FORMAT)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (default: from config)",
    )
    return parser


def _load_edges(args, config, networks: list[str], window: str) -> pd.DataFrame:
    if args.edges_file:
        logging.info("Loading edges from file: %s", args.edges_file)
        return load_edges_file(args.edges_file)

    conn = get_connection(config.db_path)
    try:
        init_db(conn)
        if args.from_cache:
            logging.info("Loading latest cached snapshot from %s", config.db_path)
            return load_latest_snapshot(conn)

        edges = fetch_flow_edges(config, networks, window)
        if config.cache_snapshots and not edges.empty:
            snapshot_id = save_snapshot(conn, edges, config.now(), window, networks)
            logging.info("Cached snapshot %s (%d edges)", snapshot_id, len(edges))
        return edges
    finally:
        conn.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        config = load_config()
        window = validate_window(args.window or config.flow_window)
        networks = parse_network_filters(args.network) if args.network is not None else config.flow_networks
    except ValueError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1
    output_format = args.format or config.output_format
    output_dir = Path(args.output_dir) if args.output_dir else config.output_dir

    try:
        edges = _load_edges(args, config, networks, window)
    except Exception as exc:
        logging.error("Failed to load flow edges: %s", exc)
        return 1

    labels, matrix = edges_to_matrix(edges)
    if not labels:
        logging.warning("No flow edges found; nothing to render.")
        return 1
    logging.info("Flow matrix: %d nodes, %d edges", len(labels), len(edges))

    tag = config.now().strftime("%Y%m%d_%H%M")
    if config.export_csv:
        csv_path = output_dir / f"network_flow_{tag}.csv"
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        edges.to_csv(csv_path, index=False)

    try:
        render_flow_diagram(
            labels,
            matrix,
            output_dir / f"network_flow_{tag}.{output_format}",
            output_format=output_format,
            size_inches=config.output_size_inches,
            dpi=config.output_dpi,
            title=config.plot_title,
            color_policy=config.color_policy,
            colormap_name=config.colormap_name,
            self_flow=config.self_flow_policy,
        )
    except DiagramInputError as exc:
        logging.error("Cannot render flow diagram: %s", exc)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
