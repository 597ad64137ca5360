# src/abi_digest/core/digest/compute.py
"""
Cálculo de digest de topo.

Liga o walker ao cache concorrente: cada chamada de topo recebe um walker
e um registro de visitados novos; o cache garante single-flight por
identidade.
"""

from __future__ import annotations

from typing import Any, Optional

from abi_digest.core.shape.identity import identity_of
from abi_digest.core.shape.walker import ShapeWalker
from abi_digest.core.types import Digest

from .cache import DigestCache, get_default_cache


def compute_digest(source: Any, cache: Optional[DigestCache] = None) -> Digest:
    """
    Retorna o digest de ABI de `source` (classe ou type hint).

    Args:
        source: Tipo digerível.
        cache: Cache a usar; o cache padrão do processo quando omitido.

    Raises:
        UnsupportedShape: Se `source` (ou algum tipo alcançável) não possui
            shape canônico.
    """
    cache = cache if cache is not None else get_default_cache()
    identity = identity_of(source)
    return cache.get_or_compute(identity, lambda: ShapeWalker(cache).digest(source))
