# src/abi_digest/core/config/settings.py
"""
Configuração tipada do motor de verificação.

`resolve_settings` valida a configuração efetiva (dict) e a converte em um
`EngineSettings` imutável, consumido pelo VerificationEngine.

Chaves reconhecidas (v1):
    snapshot.path           (str)   caminho do arquivo de snapshot
    snapshot.allow_missing  (bool)  snapshot ausente é tratado como vazio
    engine.workers          (int)   threads do pool de cálculo (>= 1)
    engine.fail_on_new      (bool)  tipos novos reprovam a run
    report.markdown_path    (str?)  relatório Markdown (desligado se null)
    manifest.path           (str?)  manifest JSON da run (desligado se null)

Chaves desconhecidas são preservadas no dict e ignoradas aqui.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidConfigValueError
from .hashing import compute_config_hash
from .merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "snapshot": {
        "path": "abi-digests.snapshot",
        "allow_missing": False,
    },
    "engine": {
        "workers": 4,
        "fail_on_new": False,
    },
    "report": {
        "markdown_path": None,
    },
    "manifest": {
        "path": None,
    },
}


@dataclass(frozen=True)
class EngineSettings:
    snapshot_path: str
    allow_missing: bool = False
    workers: int = 4
    fail_on_new: bool = False
    report_path: Optional[str] = None
    manifest_path: Optional[str] = None
    config_hash: Optional[str] = None


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name)
    if not isinstance(value, dict):
        raise InvalidConfigValueError(f"Seção '{name}' deve ser um dicionário")
    return value


def _flag(section: Dict[str, Any], key: str, where: str) -> bool:
    value = section.get(key)
    if not isinstance(value, bool):
        raise InvalidConfigValueError(f"'{where}' deve ser booleano, recebido: {value!r}")
    return value


def _optional_path(section: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfigValueError(f"'{where}' deve ser caminho não vazio ou null")
    return value


def resolve_settings(config: Optional[Dict[str, Any]] = None) -> EngineSettings:
    """
    Valida a configuração e produz `EngineSettings`.

    Args:
        config: Configuração (parcial ou efetiva). É combinada sobre
            `DEFAULT_CONFIG` antes da validação.

    Returns:
        EngineSettings: Configuração tipada, com o hash da configuração
        efetiva para o manifest.

    Raises:
        ConfigTypeConflictError: Se `config` conflita com os defaults.
        InvalidConfigValueError: Se algum valor estiver fora do domínio.
    """
    effective = deep_merge(DEFAULT_CONFIG, config or {})

    snapshot = _section(effective, "snapshot")
    engine = _section(effective, "engine")
    report = _section(effective, "report")
    manifest = _section(effective, "manifest")

    path = snapshot.get("path")
    if not isinstance(path, str) or not path.strip():
        raise InvalidConfigValueError("'snapshot.path' deve ser caminho não vazio")

    workers = engine.get("workers")
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        raise InvalidConfigValueError(f"'engine.workers' deve ser inteiro >= 1, recebido: {workers!r}")

    return EngineSettings(
        snapshot_path=path,
        allow_missing=_flag(snapshot, "allow_missing", "snapshot.allow_missing"),
        workers=workers,
        fail_on_new=_flag(engine, "fail_on_new", "engine.fail_on_new"),
        report_path=_optional_path(report, "markdown_path", "report.markdown_path"),
        manifest_path=_optional_path(manifest, "path", "manifest.path"),
        config_hash=compute_config_hash(effective),
    )
