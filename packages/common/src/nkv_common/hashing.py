"""Content hashing used for deduplication.

Two hash flavours exist on purpose:
- vault hashes cover the raw ingested text byte for byte
- staging hashes cover the normalised title + url of a harvested item
"""

import hashlib


def compute_content_hash(text: str) -> str:
    """SHA-256 hex digest of the raw text (no normalisation)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_item_hash(title: str, url: str) -> str:
    """SHA-256 hex digest identifying a harvested item.

    Title and url are trimmed and lower-cased, so the same paper fetched
    twice with cosmetic differences maps to one staging row.
    """
    key = f"{title.strip().lower()}{url.strip().lower()}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
