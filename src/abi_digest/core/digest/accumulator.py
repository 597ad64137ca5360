# src/abi_digest/core/digest/accumulator.py
"""
Acumulador de digest — redução canônica de um shape a 256 bits.

Este módulo implementa a codificação binária canônica de uma árvore de
shape e sua redução via SHA-256.

Política de codificação (v1):
    - Um byte de tag por tipo de nó
    - Contagens e comprimentos prefixados (u32/u64 big-endian)
    - Texto em UTF-8 prefixado por comprimento
    - Nós compostos são codificados como a concatenação dos digests já
      reduzidos de seus filhos (digest-de-digests), nunca das subárvores
    - A identidade do tipo é misturada no fluxo antes dos bytes do shape

Decisões arquiteturais:
    - Tipos aninhados já reduzidos (`FoldedShape`) entram pelo seu digest,
      sem nova travessia: o custo total é proporcional ao número de tipos
      distintos alcançáveis
    - Dois tipos com shape interno idêntico e identidades distintas
      produzem digests distintos

Invariantes:
    - `fold` é função pura de (TypeIdentity, shape)
    - Nenhum endereço de memória, ordem de dict, timestamp ou thread
      participa da codificação

Limites explícitos:
    - Não decompõe tipos (responsabilidade do walker)
    - Não mantém cache (responsabilidade do DigestCache)
"""

from __future__ import annotations

import hashlib
import struct

from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.shape.nodes import (
    EnumShape,
    FoldedShape,
    LeafShape,
    MapShape,
    ReferenceShape,
    SequenceShape,
    ShapeNode,
    StructShape,
)
from abi_digest.core.types import Digest


ENCODING_DOMAIN = b"abi-digest/v1"

TAG_LEAF = 0x01
TAG_STRUCT = 0x02
TAG_ENUM = 0x03
TAG_SEQUENCE = 0x04
TAG_MAP = 0x05
TAG_REFERENCE = 0x06
TAG_TYPE = 0x10

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


def _u32(n: int) -> bytes:
    return struct.pack(">I", n)


def _u64(n: int) -> bytes:
    return struct.pack(">Q", n)


def _i64(n: int) -> bytes:
    return struct.pack(">q", n)


def _text(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _u32(len(raw)) + raw


def encode_node(node: ShapeNode) -> bytes:
    """
    Codificação canônica de um nó de shape (sem o hash final).

    Raises:
        TypeError: Para `FoldedShape` (já é um digest) ou objetos que não
            são nós de shape.
        ValueError: Para discriminantes fora do intervalo i64.
    """
    if isinstance(node, LeafShape):
        return bytes([TAG_LEAF]) + _text(node.kind.value) + _u32(node.width)

    if isinstance(node, StructShape):
        return (
            bytes([TAG_STRUCT])
            + _u32(len(node.fields))
            + b"".join(node_digest(child).value for child in node.fields)
        )

    if isinstance(node, EnumShape):
        parts = [bytes([TAG_ENUM]), _u32(len(node.variants))]
        for discriminant, variant in node.variants:
            if not I64_MIN <= discriminant <= I64_MAX:
                raise ValueError(f"Discriminante fora do intervalo i64: {discriminant}")
            parts.append(_i64(discriminant))
            parts.append(node_digest(variant).value)
        return b"".join(parts)

    if isinstance(node, SequenceShape):
        if node.fixed:
            marker = b"\x01" + _u64(node.length)
        else:
            marker = b"\x00"
        return bytes([TAG_SEQUENCE]) + marker + node_digest(node.element).value

    if isinstance(node, MapShape):
        return bytes([TAG_MAP]) + node_digest(node.key).value + node_digest(node.value).value

    if isinstance(node, ReferenceShape):
        return bytes([TAG_REFERENCE]) + _text(node.identity.canonical)

    if isinstance(node, FoldedShape):
        raise TypeError("FoldedShape já está reduzido; use node_digest")

    raise TypeError(f"Nó de shape desconhecido: {type(node).__name__}")


def node_digest(node: ShapeNode) -> Digest:
    """Digest de um nó anônimo; nós já reduzidos retornam seu próprio digest."""
    if isinstance(node, FoldedShape):
        return node.digest
    return Digest(hashlib.sha256(encode_node(node)).digest())


def fold(identity: TypeIdentity, shape: ShapeNode) -> Digest:
    """
    Reduz (TypeIdentity, shape) a um Digest.

    Layout:
        ENCODING_DOMAIN || TAG_TYPE || len(identity) || identity || digest(shape)
    """
    h = hashlib.sha256()
    h.update(ENCODING_DOMAIN)
    h.update(bytes([TAG_TYPE]))
    h.update(_text(identity.canonical))
    h.update(node_digest(shape).value)
    return Digest(h.digest())
