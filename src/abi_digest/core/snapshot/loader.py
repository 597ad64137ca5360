# src/abi_digest/core/snapshot/loader.py
"""
Leitura do arquivo de snapshot.

O arquivo é mapeado em memória somente-leitura (`mmap.ACCESS_READ`): vários
processos de verificação compartilham as mesmas páginas, e snapshots
grandes não são copiados inteiros para a memória do processo.

Validação (qualquer violação → SnapshotCorruptError, que aborta a run):
    - primeira linha igual a `SNAPSHOT_HEADER`
    - linhas de dados no formato `<64 hex minúsculos>  <identidade>`
    - identidade não vazia e sem espaços
    - identidades únicas
    - texto UTF-8 válido

Linhas vazias e comentários (`#`) após o cabeçalho são ignorados.
"""

from __future__ import annotations

import mmap
import re
from pathlib import Path
from typing import Dict, Iterable, List, Union

from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.types import Digest, DigestRecord, Snapshot

from .errors import SnapshotCorruptError, SnapshotNotFoundError
from .writer import SEPARATOR, SNAPSHOT_HEADER


_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


def parse_snapshot(lines: Iterable[bytes], *, path: str = "<memory>") -> Snapshot:
    """
    Interpreta as linhas (bytes) de um snapshot.

    Raises:
        SnapshotCorruptError: Em qualquer violação de formato.
    """
    records: List[DigestRecord] = []
    seen: Dict[TypeIdentity, int] = {}
    header_seen = False

    for number, raw in enumerate(lines, start=1):
        try:
            line = raw.decode("utf-8").rstrip("\r\n")
        except UnicodeDecodeError as exc:
            raise SnapshotCorruptError(f"UTF-8 inválido: {exc}", path=path, line=number) from exc

        if not header_seen:
            if line != SNAPSHOT_HEADER:
                raise SnapshotCorruptError(
                    f"cabeçalho inesperado: {line[:60]!r}", path=path, line=number
                )
            header_seen = True
            continue

        if not line.strip() or line.startswith("#"):
            continue

        digest_hex, sep, identity_text = line.partition(SEPARATOR)
        if not sep or not _DIGEST_RE.match(digest_hex):
            raise SnapshotCorruptError("linha malformada", path=path, line=number)
        if not identity_text or any(ch.isspace() for ch in identity_text):
            raise SnapshotCorruptError("identidade de tipo inválida", path=path, line=number)

        identity = TypeIdentity.parse(identity_text)
        if identity in seen:
            raise SnapshotCorruptError(
                f"identidade duplicada {identity} (primeira na linha {seen[identity]})",
                path=path,
                line=number,
            )
        seen[identity] = number
        records.append(
            DigestRecord(identity=identity, digest=Digest.from_hex(digest_hex), sequence=len(records))
        )

    if not header_seen:
        raise SnapshotCorruptError("arquivo vazio (sem cabeçalho)", path=path)

    return Snapshot(records=tuple(records))


def load_snapshot(path: Union[str, Path], *, allow_missing: bool = False) -> Snapshot:
    """
    Carrega o snapshot de `path` via mapeamento de memória somente-leitura.

    Args:
        path: Caminho do arquivo.
        allow_missing: Trata arquivo ausente como snapshot vazio.

    Raises:
        SnapshotNotFoundError: Arquivo ausente e `allow_missing=False`.
        SnapshotCorruptError: Arquivo malformado.
    """
    file = Path(path)
    if not file.exists():
        if allow_missing:
            return Snapshot()
        raise SnapshotNotFoundError(str(file))

    with file.open("rb") as f:
        if file.stat().st_size == 0:
            raise SnapshotCorruptError("arquivo vazio (sem cabeçalho)", path=str(file))
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as view:
            return parse_snapshot(iter(view.readline, b""), path=str(file))
