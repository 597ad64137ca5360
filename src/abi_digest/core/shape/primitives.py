# src/abi_digest/core/shape/primitives.py
"""
Primitivas de largura fixa reconhecidas pelo walker de shapes.

Python não possui inteiros de largura fixa: `int` é ilimitado e, portanto,
não tem representação estável no fio. Este módulo define marcadores
explícitos (via `typing.Annotated`) que declaram o tipo primitivo e a
largura, em bits, de um campo serializado.

Exemplo:
    @dataclass
    class Header:
        version: U8
        slot: U64
        hash: Annotated[bytes, FixedLen(32)]

Decisões arquiteturais:
    - O tipo primitivo faz parte do shape (u32 ≠ i32 ≠ f32)
    - A largura é expressa em bits
    - `FixedLen` converte uma sequência variável em sequência de tamanho fixo

Limites explícitos:
    - Não valida valores em runtime
    - Não serializa dados reais
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated


class PrimitiveKind(str, Enum):
    """Família de um tipo primitivo. O valor textual entra no digest."""

    UNIT = "unit"
    BOOL = "bool"
    UINT = "uint"
    INT = "int"
    FLOAT = "float"
    CHAR = "char"
    STR = "str"


@dataclass(frozen=True)
class Primitive:
    """Marcador de primitivo: nome canônico, família e largura em bits."""

    name: str
    kind: PrimitiveKind
    width: int


@dataclass(frozen=True)
class FixedLen:
    """Marcador de sequência de tamanho fixo (ex.: `[u8; 32]`)."""

    length: int

    def __post_init__(self) -> None:
        if not isinstance(self.length, int) or isinstance(self.length, bool) or self.length < 0:
            raise ValueError(f"FixedLen requer inteiro não negativo, recebido: {self.length!r}")


U8 = Annotated[int, Primitive("u8", PrimitiveKind.UINT, 8)]
U16 = Annotated[int, Primitive("u16", PrimitiveKind.UINT, 16)]
U32 = Annotated[int, Primitive("u32", PrimitiveKind.UINT, 32)]
U64 = Annotated[int, Primitive("u64", PrimitiveKind.UINT, 64)]
U128 = Annotated[int, Primitive("u128", PrimitiveKind.UINT, 128)]

I8 = Annotated[int, Primitive("i8", PrimitiveKind.INT, 8)]
I16 = Annotated[int, Primitive("i16", PrimitiveKind.INT, 16)]
I32 = Annotated[int, Primitive("i32", PrimitiveKind.INT, 32)]
I64 = Annotated[int, Primitive("i64", PrimitiveKind.INT, 64)]
I128 = Annotated[int, Primitive("i128", PrimitiveKind.INT, 128)]

F32 = Annotated[float, Primitive("f32", PrimitiveKind.FLOAT, 32)]
F64 = Annotated[float, Primitive("f64", PrimitiveKind.FLOAT, 64)]

Bool = Annotated[bool, Primitive("bool", PrimitiveKind.BOOL, 8)]
Char = Annotated[str, Primitive("char", PrimitiveKind.CHAR, 32)]
Unit = Annotated[type(None), Primitive("()", PrimitiveKind.UNIT, 0)]
