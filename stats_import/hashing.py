"""
Content digests used by the duplicate-upload gate.
"""

from __future__ import annotations

import hashlib


def compute_content_hash(content: bytes) -> str:
    """
    Return the SHA-256 hex digest of the uploaded bytes.
    """

    return hashlib.sha256(content).hexdigest()
