from __future__ import annotations

import ipaddress
from typing import Optional, Tuple


def cidr_to_range(cidr: str) -> Tuple[str, str]:
    """Return (network address, broadcast address) for an IPv4 or IPv6 CIDR."""
    try:
        network = ipaddress.ip_network(cidr.strip(), strict=False)
    except ValueError as exc:
        raise ValueError(f"Invalid CIDR notation: {cidr}") from exc
    return str(network.network_address), str(network.broadcast_address)


def parse_network_filters(value: Optional[str]) -> list[str]:
    """Split a comma-separated CIDR list, validating every entry."""
    if not value:
        return []
    networks = [item.strip() for item in value.split(",") if item.strip()]
    for cidr in networks:
        cidr_to_range(cidr)
    return networks
