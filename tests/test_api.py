# tests/test_api.py
"""
Testes dos pontos de entrada públicos (`abi_digest.api`).

Exercitam o fluxo completo como um projeto o usaria: tipos registrados
com `@frozen_abi`, freeze do snapshot e verificação em um build posterior.
"""

from dataclasses import dataclass
from typing import Annotated, List

import pytest

from abi_digest import (
    U8,
    U64,
    FixedLen,
    FreezeBlocked,
    TypeCatalog,
    VerificationStatus,
    check_declared_digests,
    compute_digest,
    freeze,
    frozen_abi,
    verify_against_snapshot,
)
from abi_digest.core.digest.cache import DigestCache, get_default_cache
from abi_digest.core.snapshot.errors import SnapshotNotFoundError
from tests.fixtures.abi_types import Header, HeaderWiderVersion, Opaque, Point


def _catalog(*sources):
    catalog = TypeCatalog()
    for source in sources:
        catalog.add(source)
    return catalog


def test_compute_digest_uses_process_cache():
    digest = compute_digest(Point)
    assert compute_digest(Point) == digest
    assert get_default_cache().computations == 1
    assert compute_digest(Point, cache=DigestCache()) == digest


def test_decorated_types_freeze_and_verify(tmp_path):
    @frozen_abi()
    @dataclass
    class BlockHeader:
        slot: U64
        parent: Annotated[bytes, FixedLen(32)]

    @frozen_abi()
    @dataclass
    class Block:
        header: BlockHeader
        votes: List[U8]

    path = tmp_path / "abi.snapshot"
    snapshot = freeze(path)
    assert len(snapshot) == 2
    assert path.read_text(encoding="utf-8").startswith("# abi-digest snapshot v1\n")

    result = verify_against_snapshot(path)
    assert result.status is VerificationStatus.PASS
    assert result.clean


def test_layout_change_between_builds_fails(tmp_path):
    path = tmp_path / "abi.snapshot"
    freeze(path, catalog=_catalog(Header, Point), cache=DigestCache())

    result = verify_against_snapshot(path, catalog=_catalog(HeaderWiderVersion, Point), cache=DigestCache())

    assert result.status is VerificationStatus.FAIL
    assert [c.identity.canonical for c in result.changed] == ["fixtures.Header"]


def test_path_comes_from_config_when_omitted(tmp_path):
    config = {"snapshot": {"path": str(tmp_path / "abi.snapshot")}}
    catalog = _catalog(Point)
    with pytest.raises(SnapshotNotFoundError):
        verify_against_snapshot(catalog=catalog, config=config)

    freeze(catalog=catalog, config=config)
    assert verify_against_snapshot(catalog=catalog, config=config).passed


def test_freeze_blocked(tmp_path):
    with pytest.raises(FreezeBlocked):
        freeze(tmp_path / "abi.snapshot", catalog=_catalog(Opaque))
    assert not (tmp_path / "abi.snapshot").exists()


def test_declared_digest_check():
    expected = compute_digest(Point, cache=DigestCache()).hex()

    @frozen_abi(digest=expected)
    @dataclass
    class Declared:
        __abi_name__ = "api.Declared"

        x: U64

    frozen_abi(digest=expected)(Point)

    mismatches = check_declared_digests()
    assert [m.identity.canonical for m in mismatches] == ["api.Declared"]
