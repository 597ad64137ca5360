# src/abi_digest/core/traceability/manifest.py
"""
Manifest v1 — registro rastreável de uma run de verificação.

O manifest consolida, em JSON determinístico:
    - run:     run_id, instante de início, versão do abi-digest, modo
    - inputs:  hash da configuração, caminho e hash do snapshot
    - events:  Event Log ordenado (transições de estado, falhas)
    - result:  resumo do VerificationResult (status e contagens)

Decisões arquiteturais:
    - Eventos são adicionados apenas explicitamente (`add_event`)
    - Timestamps são sempre UTC com timezone
    - `save_manifest` usa `sort_keys=True`: o mesmo manifest produz os
      mesmos bytes

Invariantes:
    - `events` é sempre uma lista ordenada pela ordem de chamada
    - `to_dict` / `from_dict` fazem round-trip sem perda
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza `dt` para UTC; datetimes ingênuos são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


@dataclass
class RunManifest:
    run: Dict[str, Any]
    inputs: Dict[str, Any]
    events: List[Dict[str, Any]] = field(default_factory=list)
    result: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "events": [dict(e) for e in self.events],
            "result": dict(self.result),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrói o manifest; campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            events=[dict(e) for e in (data.get("events", []) or [])],
            result=dict(data.get("result", {}) or {}),
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    version: str,
    mode: str,
    config_hash: Optional[str],
    snapshot_path: str,
) -> RunManifest:
    """
    Cria o manifest inicial de uma run.

    O Event Log começa vazio; o hash do snapshot é preenchido pelo Engine
    depois do carregamento (ou do freeze).

    Args:
        run_id: Identificador único da run.
        started_at: Instante de início.
        version: Versão do abi-digest.
        mode: `verify` ou `freeze`.
        config_hash: Hash da configuração efetiva.
        snapshot_path: Caminho do snapshot usado.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "abi_digest_version": version,
            "mode": mode,
        },
        inputs={
            "config_hash": config_hash,
            "snapshot_path": snapshot_path,
            "snapshot_hash": None,
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Anexa um evento explícito ao Event Log, preservando a ordem de chamada."""
    event: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if payload is not None:
        event["payload"] = payload
    manifest.events.append(event)


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """
    Persiste o manifest em JSON determinístico (UTF-8, chaves ordenadas).

    Diretórios ausentes são criados.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest.to_dict()
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> RunManifest:
    """
    Carrega um manifest salvo por `save_manifest`.

    Raises:
        FileNotFoundError: Se o arquivo não existir.
        json.JSONDecodeError: Em caso de JSON inválido.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
