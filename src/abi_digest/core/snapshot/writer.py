# src/abi_digest/core/snapshot/writer.py
"""
Escrita do arquivo de snapshot (freeze).

Formato (v1, UTF-8, fim de linha `\n`):
    # abi-digest snapshot v1
    <digest hex 64>  <type identity>
    ...

Decisões arquiteturais:
    - Linhas ordenadas por identidade canônica: o diff no controle de
      versão mostra exatamente os tipos alterados
    - Escrita atômica: arquivo temporário irmão + fsync + `os.replace`;
      nenhum leitor concorrente observa um snapshot parcial

Invariantes:
    - `render_snapshot` é função pura do conjunto de registros
    - `freeze_records` renumera as sequências pela posição no arquivo
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Union

from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.types import DigestRecord, Snapshot


SNAPSHOT_HEADER = "# abi-digest snapshot v1"
SEPARATOR = "  "


def freeze_records(live: Iterable[DigestRecord]) -> Snapshot:
    """
    Constrói o Snapshot que contém exatamente o conjunto `live`.

    Raises:
        ValueError: Se a mesma identidade aparece com digests distintos.
    """
    by_identity: Dict[TypeIdentity, DigestRecord] = {}
    for record in live:
        existing = by_identity.get(record.identity)
        if existing is not None and existing.digest != record.digest:
            raise ValueError(f"Digests conflitantes para {record.identity}")
        by_identity.setdefault(record.identity, record)

    ordered = sorted(by_identity.values(), key=lambda r: r.identity.canonical)
    return Snapshot(
        records=tuple(
            DigestRecord(identity=r.identity, digest=r.digest, sequence=i)
            for i, r in enumerate(ordered)
        )
    )


def render_snapshot(snapshot: Snapshot) -> str:
    lines = [SNAPSHOT_HEADER]
    for record in sorted(snapshot.records, key=lambda r: r.identity.canonical):
        lines.append(f"{record.digest.hex()}{SEPARATOR}{record.identity.canonical}")
    return "\n".join(lines) + "\n"


def write_snapshot(path: Union[str, Path], snapshot: Snapshot) -> Path:
    """Grava `snapshot` em `path` de forma atômica e retorna o caminho."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(render_snapshot(snapshot))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, str(target))
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target
