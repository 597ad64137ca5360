# src/abi_digest/__init__.py
"""
abi-digest — impressões digitais determinísticas de layout binário.

Protege tipos serializados no fio ou em disco contra mudanças silenciosas
de layout: cada tipo é decomposto em um shape canônico, reduzido a um
digest SHA-256 e comparado com um snapshot congelado.

Arquitetura em alto nível:
    - core.shape   → walker de shapes e registro de visitados
    - core.digest  → acumulador e cache concorrente single-flight
    - core.engine  → verificação contra snapshot e freeze

Limites explícitos:
    - Não serializa valores reais
    - Não valida dados em runtime
"""

from .api import compute_digest, freeze, verify_against_snapshot
from .core.catalog.registry import TypeCatalog, check_declared_digests, default_catalog, frozen_abi
from .core.exceptions import FreezeBlocked, UnsupportedShape
from .core.shape.identity import TypeIdentity, identity_of
from .core.shape.primitives import (
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    U8,
    U16,
    U32,
    U64,
    U128,
    Bool,
    Char,
    FixedLen,
    Unit,
)
from .core.types import Digest, RunState, VerificationStatus
from .core.verify.diff import VerificationResult
from .version import __version__

__all__ = [
    "compute_digest",
    "verify_against_snapshot",
    "freeze",
    "frozen_abi",
    "check_declared_digests",
    "default_catalog",
    "TypeCatalog",
    "TypeIdentity",
    "identity_of",
    "Digest",
    "RunState",
    "VerificationStatus",
    "VerificationResult",
    "UnsupportedShape",
    "FreezeBlocked",
    "FixedLen",
    "U8", "U16", "U32", "U64", "U128",
    "I8", "I16", "I32", "I64", "I128",
    "F32", "F64", "Bool", "Char", "Unit",
    "__version__",
]
