# tests/core/digest/test_accumulator.py
"""
Testes do acumulador de digest (codificação canônica + SHA-256).
"""

import hashlib

import pytest

from abi_digest.core.digest.accumulator import (
    ENCODING_DOMAIN,
    TAG_TYPE,
    encode_node,
    fold,
    node_digest,
)
from abi_digest.core.shape.nodes import (
    UNIT,
    EnumShape,
    FoldedShape,
    LeafShape,
    MapShape,
    ReferenceShape,
    SequenceShape,
    StructShape,
)
from abi_digest.core.shape.primitives import PrimitiveKind
from abi_digest.core.types import DIGEST_SIZE


U8_LEAF = LeafShape(PrimitiveKind.UINT, 8)
I8_LEAF = LeafShape(PrimitiveKind.INT, 8)


def test_fold_layout_mixes_identity_before_shape(ident):
    identity = ident("proto.Flag")
    raw = identity.canonical.encode("utf-8")
    expected = hashlib.sha256(
        ENCODING_DOMAIN
        + bytes([TAG_TYPE])
        + len(raw).to_bytes(4, "big")
        + raw
        + node_digest(U8_LEAF).value
    ).digest()
    assert fold(identity, U8_LEAF).value == expected
    assert len(expected) == DIGEST_SIZE


def test_identical_shape_different_identity_differs(ident):
    shape = StructShape((U8_LEAF, U8_LEAF))
    assert fold(ident("a.Left"), shape) != fold(ident("a.Right"), shape)


def test_composites_encode_child_digests(ident):
    inner = StructShape((U8_LEAF, I8_LEAF))
    folded = FoldedShape(ident("a.Inner"), node_digest(inner))
    assert node_digest(StructShape((inner,))) == node_digest(StructShape((folded,)))
    assert node_digest(folded) == folded.digest


def test_encoding_distinguishes_node_kinds():
    shapes = [
        U8_LEAF,
        I8_LEAF,
        UNIT,
        StructShape((U8_LEAF,)),
        StructShape((U8_LEAF, U8_LEAF)),
        EnumShape(((0, U8_LEAF),)),
        EnumShape(((1, U8_LEAF),)),
        SequenceShape(U8_LEAF),
        SequenceShape(U8_LEAF, 0),
        SequenceShape(U8_LEAF, 32),
        MapShape(U8_LEAF, I8_LEAF),
        MapShape(I8_LEAF, U8_LEAF),
    ]
    encoded = {node_digest(s) for s in shapes}
    assert len(encoded) == len(shapes)


def test_struct_field_order_matters():
    assert node_digest(StructShape((U8_LEAF, I8_LEAF))) != node_digest(StructShape((I8_LEAF, U8_LEAF)))


def test_reference_encodes_identity(ident):
    assert node_digest(ReferenceShape(ident("a.A"))) != node_digest(ReferenceShape(ident("a.B")))


def test_negative_discriminants_are_supported():
    assert node_digest(EnumShape(((-1, UNIT),))) != node_digest(EnumShape(((1, UNIT),)))


def test_discriminant_outside_i64_is_rejected():
    with pytest.raises(ValueError):
        encode_node(EnumShape(((2**63, UNIT),)))


def test_folded_shape_cannot_be_encoded(ident):
    folded = FoldedShape(ident("a.A"), node_digest(UNIT))
    with pytest.raises(TypeError):
        encode_node(folded)


def test_unknown_node_is_rejected():
    with pytest.raises(TypeError):
        encode_node("leaf")
