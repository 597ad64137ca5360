# src/abi_digest/core/traceability/__init__.py
"""
Rastreabilidade de runs do abi-digest — Manifest v1.
"""

from .manifest import (
    RunManifest,
    create_manifest,
    add_event,
    save_manifest,
    load_manifest,
)

__all__ = [
    "RunManifest",
    "create_manifest",
    "add_event",
    "save_manifest",
    "load_manifest",
]
