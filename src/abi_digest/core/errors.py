"""
abi-digest — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros reportados como dados.
Falhas por tipo (ex.: shape não suportado) não interrompem a verificação:
são coletadas no resultado da run e devem ser:

- explícitas
- serializáveis
- rastreáveis
- acionáveis

Divergência de digest NÃO é erro: é o resultado estruturado esperado de
`verify` (conjunto `changed`). Quem decide transformá-la em falha de
processo é o chamador (wrapper de CLI).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AbiErrorPayload:
    """
    Payload canônico de erro do abi-digest.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao mantenedor (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Shape
UNSUPPORTED_SHAPE = "UNSUPPORTED_SHAPE"

# Snapshot
SNAPSHOT_CORRUPT = "SNAPSHOT_CORRUPT"
SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def unsupported_shape(
    *,
    type_identity: str,
    reason: str,
    entry_point: Optional[str] = None,
    hint: str = "Declare larguras explícitas (U64, I32, ...) ou implemente `abi_shape` no tipo.",
) -> AbiErrorPayload:
    return AbiErrorPayload(
        type=UNSUPPORTED_SHAPE,
        message="Tipo sem shape canônico",
        details={
            "type_identity": type_identity,
            "reason": reason,
            "entry_point": entry_point,
        },
        hint=hint,
    )


def snapshot_corrupt(
    *,
    path: str,
    reason: str,
    line: Optional[int] = None,
    hint: str = "Restaure o snapshot a partir do controle de versão ou regenere-o com freeze.",
) -> AbiErrorPayload:
    return AbiErrorPayload(
        type=SNAPSHOT_CORRUPT,
        message="Snapshot malformado; nenhuma comparação foi feita",
        details={"path": path, "reason": reason, "line": line},
        hint=hint,
    )


def snapshot_not_found(
    *,
    path: str,
    hint: str = "Execute freeze para criar o snapshot inicial ou habilite `snapshot.allow_missing`.",
) -> AbiErrorPayload:
    return AbiErrorPayload(
        type=SNAPSHOT_NOT_FOUND,
        message="Snapshot não encontrado",
        details={"path": path},
        hint=hint,
    )


def engine_execution_error(
    *,
    entry_point: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Falha inesperada no motor de digest; verifique a implementação de `abi_shape` do tipo.",
) -> AbiErrorPayload:
    return AbiErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante o cálculo de digest",
        details={
            "entry_point": entry_point,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
