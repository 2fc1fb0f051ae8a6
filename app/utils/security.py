"""
Security utilities: client identity hashing for rate limiting and audit.
"""

import hashlib
from typing import Mapping, Optional


def hash_ip_address(ip_address: Optional[str], salt: str) -> Optional[str]:
    """
    Hash IP address for privacy protection.

    Uses SHA-256 with a salt to prevent rainbow table attacks.
    Stores only first 16 characters (64 bits) for reasonable uniqueness.

    Args:
        ip_address: Raw IP address string (IPv4 or IPv6)
        salt: Deployment-specific salt (settings.IP_HASH_SALT)

    Returns:
        Hashed IP address (first 16 chars) or None if input is None/empty
    """
    if not ip_address or not ip_address.strip():
        return None

    hashed = hashlib.sha256(f"{salt}{ip_address.strip()}".encode()).hexdigest()
    return hashed[:16]


def client_ip(headers: Mapping[str, str], peer: Optional[str]) -> Optional[str]:
    """
    Best-effort client IP.

    The first X-Forwarded-For hop wins (the API usually sits behind a proxy),
    otherwise the socket peer address.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer

