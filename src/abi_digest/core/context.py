# src/abi_digest/core/context.py
"""
Contexto de uma run de verificação.

O `VerificationContext` concentra o estado explícito de uma run: identidade,
configuração resolvida, logs estruturados e warnings não fatais agrupados
por fase. Não há estado global: cada run possui seu próprio contexto.

Invariantes:
    - Logs sempre incluem `run_id`, `step_id`, `level`, `message` e `timestamp`
    - Warnings são agrupados pelo identificador da fase (`step_id`)

Limites explícitos:
    - Não calcula digests
    - Não persiste nada automaticamente (o manifest é do Engine)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config.settings import EngineSettings


@dataclass
class VerificationContext:
    """
    Contexto mutável de uma run, vivo apenas durante a execução.

    `step_id` identifica a fase que emitiu o evento (ex.: `load_snapshot`,
    `walk_and_hash`, `compare`, `freeze`).
    """

    run_id: str
    created_at: datetime
    settings: EngineSettings
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event: Dict[str, Any] = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if extra:
            event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        self.warnings.setdefault(step_id, []).append(message)

    def events_for(self, step_id: str, level: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            e for e in self.events
            if e["step_id"] == step_id and (level is None or e["level"] == level)
        ]
