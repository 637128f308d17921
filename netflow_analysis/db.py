from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable

import duckdb
import pandas as pd
import pytz

EDGE_COLUMNS = ["source", "dest", "bytes"]
SNAPSHOT_ID_FORMAT = "%Y%m%dT%H%M%S.%fZ"


def get_connection(db_path: Path) -> duckdb.DuckDBPyConnection:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(db_path))


def init_db(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS flow_edges (
            snapshot_id TEXT,
            fetched_at TIMESTAMP,
            time_window TEXT,
            networks TEXT,
            edge_order INTEGER,
            source TEXT,
            dest TEXT,
            bytes DOUBLE
        )
        """
    )


def upsert_dataframe(
    conn: duckdb.DuckDBPyConnection,
    table_name: str,
    df: pd.DataFrame,
    key_columns: Iterable[str],
) -> None:
    if df.empty:
        return
    conn.register("df_view", df)
    keys = list(key_columns)
    if keys:
        join_clause = " AND ".join([f"{table_name}.{col} = df_view.{col}" for col in keys])
        conn.execute(f"DELETE FROM {table_name} USING df_view WHERE {join_clause}")
    columns = list(df.columns)
    column_list = ", ".join(columns)
    conn.execute(
        f"INSERT INTO {table_name} ({column_list}) SELECT {column_list} FROM df_view"
    )
    conn.unregister("df_view")


def save_snapshot(
    conn: duckdb.DuckDBPyConnection,
    edges: pd.DataFrame,
    fetched_at: datetime,
    window: str,
    networks: Iterable[str],
) -> str:
    """
    Store one fetch's edges under a snapshot id derived from fetched_at.

    Ids are UTC with microseconds so they sort chronologically whatever
    OUTPUT_TZ was at fetch time. Naive timestamps are taken as UTC.
    """
    if fetched_at.tzinfo is not None:
        fetched_at = fetched_at.astimezone(pytz.UTC)
    # DuckDB TIMESTAMP is naive.
    fetched_naive = fetched_at.replace(tzinfo=None)
    snapshot_id = fetched_naive.strftime(SNAPSHOT_ID_FORMAT)
    if edges.empty:
        return snapshot_id
    frame = edges[EDGE_COLUMNS].copy()
    frame.insert(0, "snapshot_id", snapshot_id)
    frame.insert(1, "fetched_at", fetched_naive)
    frame.insert(2, "time_window", window)
    frame.insert(3, "networks", ",".join(networks))
    frame.insert(4, "edge_order", list(range(len(frame))))
    upsert_dataframe(conn, "flow_edges", frame, ["snapshot_id", "source", "dest"])
    return snapshot_id


def load_latest_snapshot(conn: duckdb.DuckDBPyConnection) -> pd.DataFrame:
    """Edges of the most recent snapshot, in the order they were fetched."""
    return conn.execute(
        """
        SELECT source, dest, bytes
        FROM flow_edges
        WHERE snapshot_id = (SELECT MAX(snapshot_id) FROM flow_edges)
        ORDER BY edge_order
        """
    ).fetchdf()
