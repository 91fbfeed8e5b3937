"""Conversation identity derivation from a transport address."""

from __future__ import annotations

import re

_FORMATTING = re.compile(r"[\s+\-().]")


def normalize_identity(address: str) -> str:
    """
    Build the stable identity key for an address.

    Strips the transport suffix ("5215555555555@s.whatsapp.net" →
    "5215555555555") and phone formatting characters, then lower-cases.
    Applied once at ingress; the result is the join key for sessions, modes
    and advisor assignments.
    """
    if address is None:
        raise ValueError("address is required")
    local_part = address.split("@", 1)[0]
    identity = _FORMATTING.sub("", local_part).lower()
    if not identity:
        raise ValueError(f"Cannot derive an identity from {address!r}")
    return identity
