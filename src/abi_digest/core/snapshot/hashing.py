# src/abi_digest/core/snapshot/hashing.py
"""
Hash do conteúdo canônico de um snapshot, registrado no manifest da run.
"""

import hashlib

from abi_digest.core.types import Snapshot

from .writer import render_snapshot


def compute_snapshot_hash(snapshot: Snapshot) -> str:
    """SHA-256 hexadecimal do texto canônico de `snapshot`."""
    return hashlib.sha256(render_snapshot(snapshot).encode("utf-8")).hexdigest()
