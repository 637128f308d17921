"""Tests for the DuckDB snapshot cache."""

from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytz

from netflow_analysis.db import get_connection, init_db, load_latest_snapshot, save_snapshot


def _edges(rows):
    return pd.DataFrame(rows, columns=["source", "dest", "bytes"])


def test_latest_snapshot_round_trip(tmp_path):
    conn = get_connection(tmp_path / "cache" / "netflow.duckdb")
    try:
        init_db(conn)
        assert load_latest_snapshot(conn).empty

        first = save_snapshot(
            conn,
            _edges([["10.0.0.9", "10.0.0.1", 5.0], ["10.0.0.1", "10.0.0.2", 7.0]]),
            datetime(2026, 1, 1, 12, 0, tzinfo=pytz.UTC),
            "3h",
            ["10.0.0.0/8"],
        )
        second = save_snapshot(
            conn,
            _edges([["10.0.0.3", "10.0.0.4", 1.0]]),
            datetime(2026, 1, 1, 13, 30, tzinfo=pytz.UTC),
            "1h",
            ["10.0.0.0/8", "192.168.0.0/16"],
        )
        assert first == "20260101T120000.000000Z"
        assert second == "20260101T133000.000000Z"

        latest = load_latest_snapshot(conn)
        assert latest.values.tolist() == [["10.0.0.3", "10.0.0.4", 1.0]]

        stored = conn.execute(
            "SELECT networks, time_window FROM flow_edges WHERE snapshot_id = ?", [second]
        ).fetchone()
        assert stored == ("10.0.0.0/8,192.168.0.0/16", "1h")
    finally:
        conn.close()


def test_snapshot_keeps_fetch_order(tmp_path):
    conn = get_connection(tmp_path / "netflow.duckdb")
    try:
        init_db(conn)
        save_snapshot(
            conn,
            _edges([["z", "a", 1.0], ["b", "y", 2.0], ["a", "b", 3.0]]),
            datetime(2026, 2, 1, 8, 0),
            "3h",
            [],
        )
        latest = load_latest_snapshot(conn)
        assert latest["source"].tolist() == ["z", "b", "a"]
    finally:
        conn.close()


def test_empty_snapshot_is_not_stored(tmp_path):
    conn = get_connection(tmp_path / "netflow.duckdb")
    try:
        init_db(conn)
        save_snapshot(conn, _edges([]), datetime(2026, 2, 1, 8, 0), "3h", [])
        assert conn.execute("SELECT COUNT(*) FROM flow_edges").fetchone()[0] == 0
    finally:
        conn.close()


def test_latest_snapshot_ignores_timezone_of_fetch(tmp_path):
    conn = get_connection(tmp_path / "netflow.duckdb")
    try:
        init_db(conn)
        # 10:00 in New York is 15:00 UTC, later than 12:00 UTC
        later = pytz.timezone("America/New_York").localize(datetime(2026, 3, 2, 10, 0))
        earlier = datetime(2026, 3, 2, 12, 0, tzinfo=pytz.UTC)
        later_id = save_snapshot(conn, _edges([["n1", "n2", 1.0]]), later, "3h", [])
        save_snapshot(conn, _edges([["o1", "o2", 2.0]]), earlier, "3h", [])

        assert later_id == "20260302T150000.000000Z"
        assert load_latest_snapshot(conn)["source"].tolist() == ["n1"]
    finally:
        conn.close()


def test_fetches_within_one_second_stay_separate(tmp_path):
    conn = get_connection(tmp_path / "netflow.duckdb")
    try:
        init_db(conn)
        first = save_snapshot(
            conn, _edges([["a", "b", 1.0]]), datetime(2026, 3, 2, 12, 0, 0, 100), "3h", []
        )
        second = save_snapshot(
            conn, _edges([["c", "d", 2.0]]), datetime(2026, 3, 2, 12, 0, 0, 900), "3h", []
        )
        assert first != second
        assert conn.execute("SELECT COUNT(DISTINCT snapshot_id) FROM flow_edges").fetchone()[0] == 2
        assert load_latest_snapshot(conn)["source"].tolist() == ["c"]
    finally:
        conn.close()
