# tests/core/catalog/test_catalog.py
"""
Testes do TypeCatalog e do decorator `frozen_abi`.

Garantem que:
- identidades são únicas (duplicata é erro de registro)
- a ordem de registro é preservada
- o decorator registra no catálogo padrão (ou no informado)
- digests declarados inline são comparados com os calculados
"""

from dataclasses import dataclass

import pytest

from abi_digest.core.catalog.registry import (
    DuplicateTypeIdentityError,
    TypeCatalog,
    check_declared_digests,
    default_catalog,
    frozen_abi,
)
from abi_digest.core.digest.cache import DigestCache
from abi_digest.core.digest.compute import compute_digest
from abi_digest.core.shape.identity import identity_of
from abi_digest.core.shape.primitives import U32
from abi_digest.core.types import Digest
from tests.fixtures.abi_types import Color, Header, HeaderRenamedFields, Node, Pair, Point


def test_catalog_preserves_registration_order():
    catalog = TypeCatalog()
    for source in (Point, Color, Node, Pair):
        catalog.add(source)
    assert [e.identity for e in catalog.entries()] == [identity_of(s) for s in (Point, Color, Node, Pair)]
    assert len(catalog) == 4
    assert identity_of(Node) in catalog
    assert catalog.get(identity_of(Pair)).source is Pair


def test_duplicate_identity_is_rejected():
    catalog = TypeCatalog()
    catalog.add(Header)
    with pytest.raises(DuplicateTypeIdentityError):
        catalog.add(HeaderRenamedFields)
    assert len(catalog) == 1


def test_declared_digest_accepts_hex(digests):
    catalog = TypeCatalog()
    entry = catalog.add(Point, declared=digests["d1"].hex())
    assert entry.declared == digests["d1"]


def test_decorator_registers_in_default_catalog():
    @frozen_abi()
    @dataclass
    class Registered:
        value: U32

    assert [e.source for e in default_catalog().entries()] == [Registered]


def test_decorator_accepts_explicit_catalog():
    target = TypeCatalog()

    @frozen_abi(catalog=target)
    @dataclass
    class Local:
        value: U32

    assert len(default_catalog()) == 0
    assert target.entries()[0].source is Local


def test_check_declared_digests_reports_mismatches(digests):
    expected = compute_digest(Point, cache=DigestCache())
    catalog = TypeCatalog()
    catalog.add(Point, declared=expected.hex())
    catalog.add(Color, declared=digests["d2"])
    catalog.add(Node)

    mismatches = check_declared_digests(catalog, cache=DigestCache())
    assert len(mismatches) == 1
    assert mismatches[0].identity == identity_of(Color)
    assert mismatches[0].declared == digests["d2"]
    assert isinstance(mismatches[0].computed, Digest)
