# tests/core/traceability/test_run_manifest.py
"""
Testes do Manifest v1 de runs de verificação.

Este módulo valida que o manifest:
- nasce com identificação da run e inputs preenchidos
- registra eventos explícitos em ordem de chamada, com timestamps UTC
- pode ser salvo e recarregado sem perda estrutural
- é serializado de forma determinística

Decisões arquiteturais:
    - O Event Log só cresce via `add_event`
    - Datetimes ingênuos são tratados como UTC

Limites explícitos:
    - Não valida o preenchimento feito pelo VerificationEngine
      (ver tests/core/engine)
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

try:
    from abi_digest.core.traceability import (
        RunManifest,
        add_event,
        create_manifest,
        load_manifest,
        save_manifest,
    )
except Exception as e:  # noqa: BLE001
    create_manifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que as APIs do manifest estejam disponíveis.

    Falha imediatamente, sem fallback, orientando quais contratos faltam.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing manifest APIs. Implement:\n"
            "- create_manifest / add_event\n"
            "- save_manifest(manifest, path: Path) -> None  (JSON)\n"
            "- load_manifest(path: Path) -> RunManifest\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _manifest(**overrides):
    params = dict(
        run_id="run-001",
        started_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        version="0.1.0",
        mode="verify",
        config_hash="c" * 64,
        snapshot_path="abi/digests.snapshot",
    )
    params.update(overrides)
    return create_manifest(**params)


def test_create_manifest_fills_run_and_inputs():
    _require_imports()
    m = _manifest()
    assert m.run == {
        "run_id": "run-001",
        "started_at": "2024-05-01T12:00:00+00:00",
        "abi_digest_version": "0.1.0",
        "mode": "verify",
    }
    assert m.inputs == {
        "config_hash": "c" * 64,
        "snapshot_path": "abi/digests.snapshot",
        "snapshot_hash": None,
    }
    assert m.events == []
    assert m.result == {}


def test_started_at_is_normalized_to_utc():
    """
    Verifica a normalização de timestamps.

    Invariantes:
        - Datetimes ingênuos são assumidos como UTC
        - Datetimes com outro fuso são convertidos para UTC
    """
    _require_imports()
    naive = _manifest(started_at=datetime(2024, 5, 1, 12, 0))
    shifted = _manifest(started_at=datetime(2024, 5, 1, 9, 0, tzinfo=timezone(timedelta(hours=-3))))
    assert naive.run["started_at"] == "2024-05-01T12:00:00+00:00"
    assert shifted.run["started_at"] == "2024-05-01T12:00:00+00:00"


def test_events_preserve_call_order():
    _require_imports()
    m = _manifest()
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    add_event(m, event_type="state_changed", ts=ts, payload={"from": "idle", "to": "loading_snapshot"})
    add_event(m, event_type="state_changed", ts=ts + timedelta(seconds=1))

    assert [e["event_type"] for e in m.events] == ["state_changed", "state_changed"]
    assert m.events[0]["payload"] == {"from": "idle", "to": "loading_snapshot"}
    assert "payload" not in m.events[1]
    assert m.events[1]["timestamp"] == "2024-05-01T12:00:01+00:00"


def test_round_trip_save_load(tmp_path: Path):
    """
    Verifica que o manifest pode ser salvo e recarregado sem perda.

    Invariantes:
        - `to_dict` do manifest carregado é igual ao original
        - Diretórios ausentes são criados
    """
    _require_imports()
    m = _manifest()
    add_event(m, event_type="state_changed", ts=datetime(2024, 5, 1, tzinfo=timezone.utc), payload={"to": "pass"})
    m.inputs["snapshot_hash"] = "a" * 64
    m.result = {"status": "pass", "changed": 0}

    path = tmp_path / "build" / "abi-manifest.json"
    save_manifest(m, path)
    loaded = load_manifest(path)

    assert isinstance(loaded, RunManifest)
    assert loaded.to_dict() == m.to_dict()


def test_saved_json_is_deterministic(tmp_path: Path):
    _require_imports()
    first = tmp_path / "a.json"
    second = tmp_path / "b.json"
    save_manifest(_manifest(), first)
    save_manifest(_manifest(), second)
    assert first.read_bytes() == second.read_bytes()
    assert list(json.loads(first.read_text(encoding="utf-8"))) == ["events", "inputs", "result", "run"]


def test_from_dict_tolerates_missing_sections():
    _require_imports()
    m = RunManifest.from_dict({"run": {"run_id": "x"}})
    assert m.inputs == {}
    assert m.events == []
    assert m.result == {}
