# src/abi_digest/core/snapshot/errors.py
"""
Exceções da camada de snapshot.

`SnapshotCorruptError` aborta a run inteira antes de qualquer comparação:
nada pode ser comparado contra uma base não confiável.
"""

from typing import Optional


class SnapshotError(Exception):
    """Base para falhas de leitura e escrita de snapshot."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class SnapshotCorruptError(SnapshotError):
    """Arquivo de snapshot malformado (cabeçalho, linha, digest ou duplicata)."""

    def __init__(self, reason: str, *, path: str, line: Optional[int] = None) -> None:
        where = f"{path}:{line}" if line is not None else path
        super().__init__(f"Snapshot corrompido ({where}): {reason}", path=path)
        self.reason = reason
        self.line = line


class SnapshotNotFoundError(SnapshotError):
    """Arquivo de snapshot inexistente e `snapshot.allow_missing` desligado."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Snapshot não encontrado: {path}", path=path)
