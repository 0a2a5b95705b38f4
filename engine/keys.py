# engine/keys.py
from __future__ import annotations
import hashlib


def derive_key(text: str) -> str:
    """SHA-256 hex digest of the instruction text (stable across runs)."""
    return hashlib.sha256((text or "").encode("utf-8")).hexdigest()
