#!/usr/bin/env python
"""
Network Flow Chord Diagram - Entry Point

Queries source -> destination byte totals and renders them as a chord diagram.

Usage:
    python main.py --window 3h --network 10.0.0.0/8
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add netflow_analysis to path for module resolution
_package_dir = Path(__file__).resolve().parent / "netflow_analysis"
if str(_package_dir) not in sys.path:
    sys.path.insert(0, str(_package_dir))

from orchestrator import main

if __name__ == "__main__":
    sys.exit(main() or 0)
