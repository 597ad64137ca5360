# src/abi_digest/core/engine/engine.py
"""
VerificationEngine — execução de uma run de verificação ou freeze.

Máquina de estados (verificação):
    IDLE → LOADING_SNAPSHOT → WALKING_AND_HASHING → COMPARING → PASS | FAIL

Máquina de estados (freeze):
    IDLE → WALKING_AND_HASHING → PASS | FAIL

PASS e FAIL são terminais; uma instância executa uma única run.

Política de falhas:
    - UnsupportedShape (ou exceção inesperada dentro de `abi_shape`) falha
      apenas o tipo: o erro vira AbiErrorPayload no resultado e a run segue
      para todos os outros tipos; a run termina em FAIL
    - SnapshotCorruptError / SnapshotNotFoundError abortam a run antes de
      qualquer comparação (estado FAIL, exceção repassada ao chamador)
    - RegistryInvariantError indica bug do motor: FAIL e exceção repassada
    - Freeze com qualquer tipo em erro é recusado (FreezeBlocked)

Concorrência:
    Os digests dos pontos de entrada são calculados em um
    ThreadPoolExecutor (`engine.workers`). O DigestCache é o único estado
    compartilhado entre as threads.
"""

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from abi_digest.core.catalog.registry import TypeCatalog
from abi_digest.core.config.settings import EngineSettings
from abi_digest.core.context import VerificationContext
from abi_digest.core.digest.cache import DigestCache, get_default_cache
from abi_digest.core.digest.compute import compute_digest
from abi_digest.core.errors import (
    AbiErrorPayload,
    engine_execution_error,
    snapshot_corrupt,
    snapshot_not_found,
    unsupported_shape,
)
from abi_digest.core.exceptions import FreezeBlocked, RegistryInvariantError, UnsupportedShape
from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.snapshot.errors import SnapshotCorruptError, SnapshotNotFoundError
from abi_digest.core.snapshot.hashing import compute_snapshot_hash
from abi_digest.core.snapshot.loader import load_snapshot
from abi_digest.core.snapshot.writer import freeze_records, write_snapshot
from abi_digest.core.traceability.manifest import RunManifest, add_event, create_manifest, save_manifest
from abi_digest.core.types import DigestRecord, RunState, Snapshot
from abi_digest.core.verify.diff import VerificationResult, verify
from abi_digest.report.report_md import generate_report_md
from abi_digest.version import __version__


_ALLOWED: Dict[RunState, Tuple[RunState, ...]] = {
    RunState.IDLE: (RunState.LOADING_SNAPSHOT, RunState.WALKING_AND_HASHING),
    RunState.LOADING_SNAPSHOT: (RunState.WALKING_AND_HASHING, RunState.FAIL),
    RunState.WALKING_AND_HASHING: (RunState.COMPARING, RunState.PASS, RunState.FAIL),
    RunState.COMPARING: (RunState.PASS, RunState.FAIL),
    RunState.PASS: (),
    RunState.FAIL: (),
}


class EngineStateError(RuntimeError):
    """Transição de estado ilegal (ex.: reutilizar um engine já terminado)."""


@dataclass(frozen=True)
class LiveDigests:
    """Resultado da fase WALKING_AND_HASHING."""

    records: Tuple[DigestRecord, ...]
    errored: Tuple[TypeIdentity, ...]
    errors: Tuple[AbiErrorPayload, ...]


class VerificationEngine:
    """Engine de uma run (verificação ou freeze) sobre um TypeCatalog."""

    def __init__(
        self,
        *,
        catalog: TypeCatalog,
        settings: EngineSettings,
        cache: Optional[DigestCache] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.catalog = catalog
        self.settings = settings
        self.cache = cache if cache is not None else get_default_cache()
        self.ctx = VerificationContext(
            run_id=run_id or uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            settings=settings,
        )
        self.result: Optional[VerificationResult] = None
        self.manifest: Optional[RunManifest] = None
        self._state = RunState.IDLE
        self.history: List[RunState] = [RunState.IDLE]

    # ------------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, target: RunState) -> None:
        if target not in _ALLOWED[self._state]:
            raise EngineStateError(
                f"Transição ilegal: {self._state.value} → {target.value}"
            )
        previous = self._state
        self._state = target
        self.history.append(target)
        self.ctx.log(
            step_id="engine",
            level="info",
            message=f"estado {previous.value} → {target.value}",
            from_state=previous.value,
            to_state=target.value,
        )
        if self.manifest is not None:
            add_event(
                self.manifest,
                event_type="state_changed",
                ts=datetime.now(timezone.utc),
                payload={"from": previous.value, "to": target.value},
            )

    def _start_manifest(self, mode: str) -> None:
        self.manifest = create_manifest(
            run_id=self.ctx.run_id,
            started_at=self.ctx.created_at,
            version=__version__,
            mode=mode,
            config_hash=self.settings.config_hash,
            snapshot_path=self.settings.snapshot_path,
        )

    def _finish_manifest(self, summary: Dict[str, Any]) -> None:
        if self.manifest is None:
            return
        self.manifest.result = dict(summary)
        if self.settings.manifest_path is not None:
            save_manifest(self.manifest, Path(self.settings.manifest_path))

    def _fail(self, step_id: str, error: AbiErrorPayload) -> None:
        self.ctx.log(step_id=step_id, level="error", message=error.message, error=error.to_dict())
        self._transition(RunState.FAIL)
        self._finish_manifest({"status": RunState.FAIL.value, "error": error.to_dict()})

    # ------------------------------------------------------------------
    # Guardrails: exceção -> AbiErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, exc: Exception, entry_point: TypeIdentity) -> AbiErrorPayload:
        if isinstance(exc, UnsupportedShape):
            return unsupported_shape(
                type_identity=exc.details.get("type_identity", entry_point.canonical),
                reason=exc.details.get("reason", str(exc)),
                entry_point=entry_point.canonical,
            )
        return engine_execution_error(
            entry_point=entry_point.canonical,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc),
        )

    # ------------------------------------------------------------------
    # Fases
    # ------------------------------------------------------------------

    def _load_snapshot(self) -> Snapshot:
        path = self.settings.snapshot_path
        snapshot = load_snapshot(path, allow_missing=self.settings.allow_missing)
        if not Path(path).exists():
            self.ctx.add_warning(
                step_id="load_snapshot",
                message=f"snapshot ausente em {path}; tratado como vazio",
            )
        self.ctx.log(
            step_id="load_snapshot",
            level="info",
            message="snapshot carregado",
            path=path,
            records=len(snapshot),
        )
        if self.manifest is not None:
            self.manifest.inputs["snapshot_hash"] = compute_snapshot_hash(snapshot)
        return snapshot

    def compute_live(self) -> LiveDigests:
        """
        Calcula o digest de cada ponto de entrada do catálogo.

        Falhas por tipo são coletadas; as demais identidades seguem.

        Raises:
            RegistryInvariantError: Invariante interno violado (bug do motor).
        """
        entries = self.catalog.entries()
        records: List[DigestRecord] = []
        errored: List[TypeIdentity] = []
        errors: List[AbiErrorPayload] = []

        with ThreadPoolExecutor(max_workers=self.settings.workers) as pool:
            futures = [(entry, pool.submit(compute_digest, entry.source, self.cache)) for entry in entries]
            for entry, future in futures:
                try:
                    future.result()
                except RegistryInvariantError:
                    raise
                except Exception as exc:
                    error = self._exception_to_error(exc, entry.identity)
                    errored.append(entry.identity)
                    errors.append(error)
                    self.ctx.log(
                        step_id="walk_and_hash",
                        level="error",
                        message=error.message,
                        error=error.to_dict(),
                    )
                    continue

                record = self.cache.record_for(entry.identity)
                if record is None:
                    raise RegistryInvariantError(
                        message=f"Digest calculado ausente do cache: {entry.identity}",
                        details={"type_identity": entry.identity.canonical},
                    )
                records.append(record)

        records.sort(key=lambda r: r.sequence)
        self.ctx.log(
            step_id="walk_and_hash",
            level="info",
            message="digests calculados",
            computed=len(records),
            failed=len(errors),
        )
        return LiveDigests(records=tuple(records), errored=tuple(errored), errors=tuple(errors))

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run(self) -> VerificationResult:
        """
        Executa a verificação contra o snapshot configurado.

        Returns:
            VerificationResult (PASS ou FAIL); divergências são dados.

        Raises:
            SnapshotCorruptError / SnapshotNotFoundError: Run abortada.
            RegistryInvariantError: Bug do motor.
            EngineStateError: Engine já utilizado.
        """
        if self._state is not RunState.IDLE:
            raise EngineStateError(f"Engine já executado (estado {self._state.value})")
        self._start_manifest("verify")
        self._transition(RunState.LOADING_SNAPSHOT)

        try:
            snapshot = self._load_snapshot()
        except SnapshotCorruptError as exc:
            self._fail("load_snapshot", snapshot_corrupt(path=exc.path, reason=exc.reason, line=exc.line))
            raise
        except SnapshotNotFoundError as exc:
            self._fail("load_snapshot", snapshot_not_found(path=exc.path))
            raise

        self._transition(RunState.WALKING_AND_HASHING)
        try:
            live = self.compute_live()
        except RegistryInvariantError as exc:
            self._fail("walk_and_hash", engine_execution_error(exc_type=type(exc).__name__, exc_message=str(exc)))
            raise

        self._transition(RunState.COMPARING)
        result = verify(
            live.records,
            snapshot,
            errored=live.errored,
            errors=live.errors,
            fail_on_new=self.settings.fail_on_new,
        )
        for identity in result.new:
            self.ctx.add_warning(step_id="compare", message=f"tipo novo sem snapshot: {identity} (execute freeze)")
        for identity in result.removed:
            self.ctx.add_warning(step_id="compare", message=f"tipo removido do catálogo: {identity}")
        for change in result.changed:
            self.ctx.log(
                step_id="compare",
                level="error",
                message=f"digest alterado: {change.identity}",
                old=change.old.hex(),
                new=change.new.hex(),
            )

        self.result = result
        self._transition(RunState.PASS if result.passed else RunState.FAIL)

        if self.settings.report_path is not None:
            report = Path(self.settings.report_path)
            report.parent.mkdir(parents=True, exist_ok=True)
            report.write_text(generate_report_md(result), encoding="utf-8")
        self._finish_manifest(result.summary())
        return result

    def freeze(self) -> Snapshot:
        """
        Reescreve o snapshot com exatamente o conjunto vivo.

        Raises:
            FreezeBlocked: Algum tipo não teve digest calculado.
            RegistryInvariantError: Bug do motor.
            EngineStateError: Engine já utilizado.
        """
        if self._state is not RunState.IDLE:
            raise EngineStateError(f"Engine já executado (estado {self._state.value})")
        self._start_manifest("freeze")
        self._transition(RunState.WALKING_AND_HASHING)

        try:
            live = self.compute_live()
        except RegistryInvariantError as exc:
            self._fail("walk_and_hash", engine_execution_error(exc_type=type(exc).__name__, exc_message=str(exc)))
            raise

        if live.errors:
            self._transition(RunState.FAIL)
            self._finish_manifest({"status": RunState.FAIL.value, "errors": len(live.errors)})
            raise FreezeBlocked(
                message=f"Freeze recusado: {len(live.errors)} tipo(s) sem digest",
                details={"errors": [e.to_dict() for e in live.errors]},
                hint="Corrija os tipos sem shape canônico antes de congelar o snapshot.",
            )

        snapshot = freeze_records(live.records)
        write_snapshot(self.settings.snapshot_path, snapshot)
        self.ctx.log(
            step_id="freeze",
            level="info",
            message="snapshot reescrito",
            path=self.settings.snapshot_path,
            records=len(snapshot),
        )
        if self.manifest is not None:
            self.manifest.inputs["snapshot_hash"] = compute_snapshot_hash(snapshot)
        self._transition(RunState.PASS)
        self._finish_manifest({"status": RunState.PASS.value, "records": len(snapshot)})
        return snapshot
