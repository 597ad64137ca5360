"""
abi-digest — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do motor de digest.

Objetivo:
- Permitir que walker, cache e engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para AbiErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- `UnsupportedShape` aborta apenas o digest de um tipo, nunca a run inteira.
- `RegistryInvariantError` indica bug do motor, não problema de shape.
- Exceções não são frozen: `__traceback__` precisa ser atribuível ao
  propagar por `contextlib.contextmanager`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .shape.identity import TypeIdentity


@dataclass(eq=False)
class AbiException(Exception):
    """Base class para exceções internas do abi-digest.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Shape
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class UnsupportedShape(AbiException):
    """O tipo não pode ser decomposto em um shape canônico."""

    @classmethod
    def for_type(cls, identity: TypeIdentity, reason: str) -> "UnsupportedShape":
        return cls(
            message=f"Shape não suportado para {identity}: {reason}",
            details={"type_identity": identity.canonical, "reason": reason},
            hint="Declare larguras explícitas (U64, I32, ...) ou implemente `abi_shape` no tipo.",
        )

    @property
    def type_identity(self) -> TypeIdentity:
        return TypeIdentity.parse(self.details["type_identity"])


# ---------------------------------------------------------------------------
# Motor
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class RegistryInvariantError(AbiException):
    """Invariante do registro de tipos visitados (ou do cache) violada."""


@dataclass(eq=False)
class FreezeBlocked(AbiException):
    """Freeze recusado: há tipos cujo digest não pôde ser calculado."""
