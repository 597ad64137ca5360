# tests/fixtures/abi_types.py
"""
Tipos digeríveis usados pelos testes.

Definidos em nível de módulo (sem `from __future__ import annotations`)
para que `typing.get_type_hints` resolva referências adiante como
`Optional["Node"]` a partir dos globais deste módulo.

Classes que compartilham o mesmo `__abi_name__` representam revisões
sucessivas do mesmo tipo lógico e nunca devem ser calculadas no mesmo
DigestCache.
"""

import enum
from dataclasses import dataclass, field
from typing import Annotated, Dict, Generic, List, NamedTuple, Optional, Tuple, TypeVar

from abi_digest.core.shape.nodes import StructShape
from abi_digest.core.shape.primitives import (
    I32,
    U8,
    U16,
    U32,
    U64,
    Bool,
    FixedLen,
)


# ---------------------------------------------------------------------------
# Revisões do mesmo tipo lógico "fixtures.Header"
# ---------------------------------------------------------------------------

@dataclass
class Header:
    __abi_name__ = "fixtures.Header"

    version: U8
    slot: U64


@dataclass
class HeaderRenamedFields:
    __abi_name__ = "fixtures.Header"

    format_version: U8
    slot_number: U64


@dataclass
class HeaderReordered:
    __abi_name__ = "fixtures.Header"

    slot: U64
    version: U8


@dataclass
class HeaderUnsized:
    __abi_name__ = "fixtures.Header"

    version: U8
    slot: Annotated[int, "sem largura"]


@dataclass
class HeaderWiderVersion:
    __abi_name__ = "fixtures.Header"

    version: U16
    slot: U64


# ---------------------------------------------------------------------------
# Revisões de "fixtures.Point" (mesma largura, sinal diferente)
# ---------------------------------------------------------------------------

@dataclass
class Point:
    __abi_name__ = "fixtures.Point"

    x: I32
    y: I32


@dataclass
class PointUnsigned:
    __abi_name__ = "fixtures.Point"

    x: U32
    y: U32


# ---------------------------------------------------------------------------
# Tipos diversos
# ---------------------------------------------------------------------------

@dataclass
class Marker:
    pass


@dataclass
class Account:
    owner: Annotated[bytes, FixedLen(32)]
    lamports: U64
    data: bytes
    executable: Bool
    label: str
    cache_hint: Optional[U64] = field(default=None, metadata={"abi_skip": True})


class Color(enum.Enum):
    RED = 1
    GREEN = 2
    BLUE = 7


class Mode(enum.Enum):
    FAST = "fast"
    SAFE = "safe"


class Pair(NamedTuple):
    left: U32
    right: U32


@dataclass
class Ledger:
    header: Header
    accounts: List[Account]
    balances: Dict[str, U64]
    window: Tuple[U8, U8]
    color: Color


T = TypeVar("T")


@dataclass
class Box(Generic[T]):
    item: T
    items: List[T]


@dataclass
class Holder:
    small: Box[U8]
    large: Box[U64]


# ---------------------------------------------------------------------------
# Ciclos
# ---------------------------------------------------------------------------

@dataclass
class Node:
    value: U64
    next: Optional["Node"]


@dataclass
class Tree:
    label: str
    children: List["Tree"]


@dataclass
class Ping:
    pong: Optional["Pong"]


@dataclass
class Pong:
    ping: Optional["Ping"]


@dataclass
class PingHolder:
    ping: Ping


# ---------------------------------------------------------------------------
# Capacidade manual e tipos sem shape
# ---------------------------------------------------------------------------

class Signature:
    """Tipo opaco com decomposição manual: dois blocos de 32 bytes."""

    @classmethod
    def abi_shape(cls, walker):
        block = walker.walk(Annotated[bytes, FixedLen(32)])
        return StructShape((block, block))


class BrokenShape:
    @classmethod
    def abi_shape(cls, walker):
        return "not a shape"


class Opaque:
    def __init__(self, value):
        self.value = value


@dataclass
class Unbounded:
    count: int


@dataclass
class ContainsUnbounded:
    inner: Unbounded
    ok: U8
