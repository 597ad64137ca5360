# src/abi_digest/core/catalog/registry.py
"""
Catálogo de pontos de entrada do motor de digest.

O `TypeCatalog` guarda, em ordem de registro, os pares
(TypeIdentity, fonte de shape) sobre os quais o walker é invocado. A lista
é fornecida pelo código do projeto (decorator `frozen_abi` ou registro
explícito), nunca descoberta pelo motor.

Responsabilidades do módulo:
    - Validar unicidade de TypeIdentity
    - Preservar a ordem de registro
    - Guardar digests declarados inline (`@frozen_abi(digest=...)`)
    - Comparar digests declarados com os digests calculados

Decisões arquiteturais:
    - Identidade duplicada é erro fatal de registro
    - O catálogo não calcula digests por conta própria; delega a
      `compute_digest`

Invariantes:
    - Cada TypeIdentity aparece no máximo uma vez
    - `entries()` reflete exatamente a ordem de registro

Limites explícitos:
    - Não executa verificação contra snapshot (VerificationEngine)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from abi_digest.core.digest.cache import DigestCache
from abi_digest.core.digest.compute import compute_digest
from abi_digest.core.shape.identity import TypeIdentity, identity_of
from abi_digest.core.types import Digest


class DuplicateTypeIdentityError(ValueError):
    """Dois pontos de entrada com a mesma TypeIdentity."""


@dataclass(frozen=True)
class CatalogEntry:
    identity: TypeIdentity
    source: Any
    declared: Optional[Digest] = None


@dataclass(frozen=True)
class DeclaredDigestMismatch:
    identity: TypeIdentity
    declared: Digest
    computed: Digest


@dataclass
class TypeCatalog:
    """Registro ordenado de pontos de entrada (identidade → fonte de shape)."""

    _entries: Dict[TypeIdentity, CatalogEntry] = field(default_factory=dict, init=False, repr=False)
    _order: List[TypeIdentity] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def add(
        self,
        source: Any,
        *,
        declared: Union[Digest, str, None] = None,
    ) -> CatalogEntry:
        identity = identity_of(source)
        if isinstance(declared, str):
            declared = Digest.from_hex(declared)

        entry = CatalogEntry(identity=identity, source=source, declared=declared)
        with self._lock:
            if identity in self._entries:
                raise DuplicateTypeIdentityError(f"Duplicate type identity: {identity}")
            self._entries[identity] = entry
            self._order.append(identity)
        return entry

    def get(self, identity: TypeIdentity) -> CatalogEntry:
        return self._entries[identity]

    def entries(self) -> List[CatalogEntry]:
        with self._lock:
            return [self._entries[i] for i in self._order]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries


# ---------------------------------------------------------------------------
# Catálogo padrão + decorator
# ---------------------------------------------------------------------------

_default_catalog = TypeCatalog()

T = TypeVar("T")


def default_catalog() -> TypeCatalog:
    return _default_catalog


def reset_default_catalog() -> TypeCatalog:
    """Substitui o catálogo padrão por um vazio (uso em testes)."""
    global _default_catalog
    _default_catalog = TypeCatalog()
    return _default_catalog


def frozen_abi(
    digest: Optional[str] = None,
    *,
    catalog: Optional[TypeCatalog] = None,
) -> Callable[[T], T]:
    """
    Registra a classe decorada como ponto de entrada do motor de digest.

    Exemplo:
        @frozen_abi(digest="5c1e...")
        @dataclass
        class BlockHeader:
            slot: U64
            parent: Annotated[bytes, FixedLen(32)]

    Args:
        digest: Digest esperado (hex), opcional. Divergências são
            reportadas por `check_declared_digests`.
        catalog: Catálogo alvo; o catálogo padrão quando omitido.
    """

    def decorator(cls: T) -> T:
        target = catalog if catalog is not None else _default_catalog
        target.add(cls, declared=digest)
        return cls

    return decorator


def check_declared_digests(
    catalog: Optional[TypeCatalog] = None,
    cache: Optional[DigestCache] = None,
) -> List[DeclaredDigestMismatch]:
    """
    Compara os digests declarados inline com os digests calculados.

    Raises:
        UnsupportedShape: Se algum tipo com digest declarado não possui
            shape canônico.
    """
    catalog = catalog if catalog is not None else _default_catalog
    mismatches: List[DeclaredDigestMismatch] = []
    for entry in catalog.entries():
        if entry.declared is None:
            continue
        computed = compute_digest(entry.source, cache=cache)
        if computed != entry.declared:
            mismatches.append(
                DeclaredDigestMismatch(identity=entry.identity, declared=entry.declared, computed=computed)
            )
    return mismatches
