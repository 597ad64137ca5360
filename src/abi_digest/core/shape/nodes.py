# src/abi_digest/core/shape/nodes.py
"""
ShapeNode — descrição estrutural canônica de um tipo.

Variantes:
    - LeafShape(kind, width)            → primitivo
    - StructShape(fields)               → campos em ordem de declaração
    - EnumShape(variants)               → (discriminante, shape) em ordem
    - SequenceShape(element, length)    → `length=None` para tamanho variável
    - MapShape(key, value)
    - ReferenceShape(identity)          → placeholder que quebra ciclos
    - FoldedShape(identity, digest)     → tipo aninhado já reduzido a digest

Política de nomes:
    Nomes de campos e de variantes NÃO fazem parte do shape. A ordem de
    declaração faz, pois determina a ordem no fio. Renomear um campo sem
    alterar tipo ou posição mantém o digest; reordenar campos o altera.

Invariantes:
    - Nós são imutáveis e hasheáveis
    - Árvores de shape são transitórias: construídas, reduzidas, descartadas
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from abi_digest.core.types import Digest

from .identity import TypeIdentity
from .primitives import PrimitiveKind


class ShapeKind(str, Enum):
    LEAF = "leaf"
    STRUCT = "struct"
    ENUM = "enum"
    SEQUENCE = "sequence"
    MAP = "map"
    REFERENCE = "reference"
    FOLDED = "folded"


@dataclass(frozen=True)
class LeafShape:
    kind: PrimitiveKind
    width: int

    shape_kind: ClassVar[ShapeKind] = ShapeKind.LEAF


@dataclass(frozen=True)
class StructShape:
    fields: Tuple["ShapeNode", ...] = ()

    shape_kind: ClassVar[ShapeKind] = ShapeKind.STRUCT


@dataclass(frozen=True)
class EnumShape:
    variants: Tuple[Tuple[int, "ShapeNode"], ...] = ()

    shape_kind: ClassVar[ShapeKind] = ShapeKind.ENUM


@dataclass(frozen=True)
class SequenceShape:
    element: "ShapeNode"
    length: Optional[int] = None

    shape_kind: ClassVar[ShapeKind] = ShapeKind.SEQUENCE

    @property
    def fixed(self) -> bool:
        return self.length is not None


@dataclass(frozen=True)
class MapShape:
    key: "ShapeNode"
    value: "ShapeNode"

    shape_kind: ClassVar[ShapeKind] = ShapeKind.MAP


@dataclass(frozen=True)
class ReferenceShape:
    identity: TypeIdentity

    shape_kind: ClassVar[ShapeKind] = ShapeKind.REFERENCE


@dataclass(frozen=True)
class FoldedShape:
    identity: TypeIdentity
    digest: Digest

    shape_kind: ClassVar[ShapeKind] = ShapeKind.FOLDED


ShapeNode = Union[
    LeafShape,
    StructShape,
    EnumShape,
    SequenceShape,
    MapShape,
    ReferenceShape,
    FoldedShape,
]

SHAPE_NODE_TYPES = (
    LeafShape,
    StructShape,
    EnumShape,
    SequenceShape,
    MapShape,
    ReferenceShape,
    FoldedShape,
)

# Tipos de tamanho zero (marcadores, `None`, `()`) contribuem com a folha vazia.
UNIT = LeafShape(PrimitiveKind.UNIT, 0)
