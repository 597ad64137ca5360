# src/abi_digest/core/verify/diff.py
"""
Comparação entre digests vivos e snapshot congelado.

Partição por presença da identidade e igualdade de digest:
    - nos dois lados, digests iguais      → unchanged
    - nos dois lados, digests diferentes  → changed (old, new), reprova a run
    - apenas no lado vivo                 → new (warning; exige freeze)
    - apenas no snapshot                  → removed (warning)

Decisões arquiteturais:
    - Divergência é dado estruturado, não exceção: quem decide o código de
      saída é o chamador
    - `changed` traz o conjunto completo, nunca só a primeira divergência
    - Identidades cujo cálculo falhou não são reportadas como removidas;
      seus erros já reprovam a run

Invariantes:
    - `verify` é pura: não lê arquivos nem altera o cache
    - Saída em ordem estável: vivos por sequência, removidos pela ordem
      do snapshot
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, NamedTuple, Tuple

from abi_digest.core.errors import AbiErrorPayload
from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.types import Digest, DigestRecord, Snapshot, VerificationStatus


class DigestChange(NamedTuple):
    identity: TypeIdentity
    old: Digest
    new: Digest


@dataclass(frozen=True)
class VerificationResult:
    status: VerificationStatus
    unchanged: Tuple[TypeIdentity, ...] = ()
    changed: Tuple[DigestChange, ...] = ()
    new: Tuple[TypeIdentity, ...] = ()
    removed: Tuple[TypeIdentity, ...] = ()
    errors: Tuple[AbiErrorPayload, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status is VerificationStatus.PASS

    @property
    def clean(self) -> bool:
        """Nenhuma diferença, nenhum warning e nenhum erro."""
        return not (self.changed or self.new or self.removed or self.errors)

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "unchanged": len(self.unchanged),
            "changed": len(self.changed),
            "new": len(self.new),
            "removed": len(self.removed),
            "errors": len(self.errors),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "unchanged": [i.canonical for i in self.unchanged],
            "changed": [
                {"identity": c.identity.canonical, "old": c.old.hex(), "new": c.new.hex()}
                for c in self.changed
            ],
            "new": [i.canonical for i in self.new],
            "removed": [i.canonical for i in self.removed],
            "errors": [e.to_dict() for e in self.errors],
        }


def verify(
    live: Iterable[DigestRecord],
    snapshot: Snapshot,
    *,
    errored: Iterable[TypeIdentity] = (),
    errors: Iterable[AbiErrorPayload] = (),
    fail_on_new: bool = False,
) -> VerificationResult:
    """
    Compara o conjunto vivo com o snapshot.

    Args:
        live: Registros calculados nesta run.
        snapshot: Base congelada.
        errored: Identidades cujo digest não pôde ser calculado.
        errors: Payloads dos erros por tipo (reprovam a run).
        fail_on_new: Quando True, tipos novos também reprovam a run.

    Returns:
        VerificationResult com status PASS ou FAIL.
    """
    frozen = snapshot.as_mapping()
    failed = set(errored)
    live_ids = set()

    unchanged = []
    changed = []
    new = []
    for record in sorted(live, key=lambda r: r.sequence):
        if record.identity in live_ids:
            continue
        live_ids.add(record.identity)
        baseline = frozen.get(record.identity)
        if baseline is None:
            new.append(record.identity)
        elif baseline.digest == record.digest:
            unchanged.append(record.identity)
        else:
            changed.append(DigestChange(record.identity, baseline.digest, record.digest))

    removed = [
        r.identity for r in snapshot.records
        if r.identity not in live_ids and r.identity not in failed
    ]
    errors = tuple(errors)

    failing = bool(changed) or bool(errors) or (fail_on_new and bool(new))
    return VerificationResult(
        status=VerificationStatus.FAIL if failing else VerificationStatus.PASS,
        unchanged=tuple(unchanged),
        changed=tuple(changed),
        new=tuple(new),
        removed=tuple(removed),
        errors=errors,
    )
