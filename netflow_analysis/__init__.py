"""
Network Flow Chord Diagram Package

Aggregates bytes transferred between IP addresses and draws them as a
chord diagram: nodes on a ring, chords sized by flow volume.
"""
from __future__ import annotations

__version__ = "0.1.0"
