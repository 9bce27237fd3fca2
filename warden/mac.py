"""
MAC Verification
HMAC-SHA256 and double-HMAC comparison.

Comparing two MACs byte by byte can leak how many leading bytes match.
Instead, each side is run through HMAC again under the MAC key and the
two digests are compared. An attacker cannot steer the second-round
digests, so the comparison time tells them nothing about the MACs.
"""

import hashlib
import hmac


def hmac_sha256(key: bytes, data: bytes) -> bytes:
    """Keyed SHA-256 digest of data."""
    return hmac.new(key, data, hashlib.sha256).digest()


def macs_equal(mac_key: bytes, mac1: bytes, mac2: bytes) -> bool:
    """
    Compare two MACs with double HMAC verification.

    Args:
        mac_key: The MAC key the values were computed under.
        mac1: First MAC.
        mac2: Second MAC.

    Returns:
        True if the MACs are identical.
    """
    return hmac_sha256(mac_key, mac1) == hmac_sha256(mac_key, mac2)
