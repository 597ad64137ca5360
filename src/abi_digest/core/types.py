# src/abi_digest/core/types.py
"""
Tipos canônicos do motor de digest de ABI.

Este módulo define as estruturas de valor que circulam entre o walker,
o acumulador, o cache, o snapshot e o motor de verificação.

Componentes principais:
    - Digest              → 256 bits opacos, comparáveis apenas por igualdade
    - DigestRecord        → (TypeIdentity, Digest, número de sequência)
    - Snapshot            → sequência ordenada e imutável de DigestRecords
    - RunState            → estados da máquina de estados de uma verificação
    - VerificationStatus  → resultado terminal (PASS / FAIL)

Princípios fundamentais:
    - Tipos são imutáveis e serializáveis
    - Nenhuma lógica de execução vive neste módulo

Invariantes:
    - Um Digest possui exatamente 32 bytes
    - Enums possuem valores textuais canônicos e estáveis

Limites explícitos:
    - Não calcula digests
    - Não lê nem escreve snapshots
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Tuple

from .shape.identity import TypeIdentity


DIGEST_SIZE = 32


@dataclass(frozen=True)
class Digest:
    """
    Digest criptográfico de 256 bits.

    O valor é opaco: a única operação significativa é a comparação
    por igualdade. A representação textual é hexadecimal minúscula
    de 64 caracteres, usada no arquivo de snapshot.
    """

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes) or len(self.value) != DIGEST_SIZE:
            raise ValueError(f"Digest deve ter {DIGEST_SIZE} bytes")

    def hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Digest({self.hex()[:16]}…)"

    @classmethod
    def from_hex(cls, text: str) -> "Digest":
        if len(text) != DIGEST_SIZE * 2:
            raise ValueError(f"Digest hexadecimal deve ter {DIGEST_SIZE * 2} caracteres")
        return cls(bytes.fromhex(text))


@dataclass(frozen=True)
class DigestRecord:
    """
    Registro (identidade, digest, sequência).

    O número de sequência reflete a ordem de primeira computação dentro
    de uma run (ou a posição da linha no snapshot) e é usado apenas para
    saída estável e legível; nunca para correção.
    """

    identity: TypeIdentity
    digest: Digest
    sequence: int


@dataclass(frozen=True)
class Snapshot:
    """Conjunto congelado de digests, imutável durante uma verificação."""

    records: Tuple[DigestRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DigestRecord]:
        return iter(self.records)

    def as_mapping(self) -> Dict[TypeIdentity, DigestRecord]:
        return {r.identity: r for r in self.records}


class RunState(str, Enum):
    """
    Estados de uma run de verificação.

    Transições válidas:
        IDLE → LOADING_SNAPSHOT → WALKING_AND_HASHING → COMPARING → PASS | FAIL

    PASS e FAIL são terminais. Qualquer estado não terminal pode ir para
    FAIL quando a run é abortada (ex.: snapshot corrompido).
    """

    IDLE = "idle"
    LOADING_SNAPSHOT = "loading_snapshot"
    WALKING_AND_HASHING = "walking_and_hashing"
    COMPARING = "comparing"
    PASS = "pass"
    FAIL = "fail"

    @property
    def terminal(self) -> bool:
        return self in (RunState.PASS, RunState.FAIL)


class VerificationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
