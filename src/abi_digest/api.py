# src/abi_digest/api.py
"""
Pontos de entrada públicos do abi-digest.

    compute_digest(source)           → Digest de um tipo
    verify_against_snapshot(path)    → VerificationResult (PASS / FAIL)
    freeze(path)                     → Snapshot reescrito com o conjunto vivo

O wrapper de CLI ou de testes (fora deste pacote) mapeia PASS para código
de saída 0 e FAIL para não zero.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Dict, Optional, Union

from abi_digest.core.catalog.registry import TypeCatalog, default_catalog
from abi_digest.core.config.settings import EngineSettings, resolve_settings
from abi_digest.core.digest.cache import DigestCache
from abi_digest.core.digest.compute import compute_digest
from abi_digest.core.engine.engine import VerificationEngine
from abi_digest.core.types import Snapshot
from abi_digest.core.verify.diff import VerificationResult


def _settings(path: Union[str, Path, None], config: Optional[Dict[str, Any]]) -> EngineSettings:
    settings = resolve_settings(config)
    if path is not None:
        settings = dataclasses.replace(settings, snapshot_path=str(path))
    return settings


def verify_against_snapshot(
    path: Union[str, Path, None] = None,
    *,
    catalog: Optional[TypeCatalog] = None,
    config: Optional[Dict[str, Any]] = None,
    cache: Optional[DigestCache] = None,
) -> VerificationResult:
    """
    Verifica os tipos do catálogo contra o snapshot em `path`.

    Args:
        path: Snapshot; `snapshot.path` da configuração quando omitido.
        catalog: Pontos de entrada; o catálogo padrão quando omitido.
        config: Configuração (dict) combinada sobre os defaults.
        cache: Cache de digests; o cache do processo quando omitido.

    Raises:
        SnapshotCorruptError: Snapshot malformado (run abortada).
        SnapshotNotFoundError: Snapshot ausente sem `snapshot.allow_missing`.
    """
    engine = VerificationEngine(
        catalog=catalog if catalog is not None else default_catalog(),
        settings=_settings(path, config),
        cache=cache,
    )
    return engine.run()


def freeze(
    path: Union[str, Path, None] = None,
    *,
    catalog: Optional[TypeCatalog] = None,
    config: Optional[Dict[str, Any]] = None,
    cache: Optional[DigestCache] = None,
) -> Snapshot:
    """
    Reescreve atomicamente o snapshot com os digests atuais do catálogo.

    Raises:
        FreezeBlocked: Algum tipo do catálogo não possui shape canônico.
    """
    engine = VerificationEngine(
        catalog=catalog if catalog is not None else default_catalog(),
        settings=_settings(path, config),
        cache=cache,
    )
    return engine.freeze()


__all__ = ["compute_digest", "verify_against_snapshot", "freeze"]
