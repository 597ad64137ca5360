# src/abi_digest/core/config/loader.py
"""
Loader de configuração do abi-digest.

A configuração efetiva é resolvida a partir de:
    - `DEFAULT_CONFIG` embutido (sempre presente)
    - um arquivo de configuração do projeto (obrigatório quando informado)
    - um arquivo local de overrides (opcional; ignorado se ausente)

Exemplo (abi-digest.yaml):
    snapshot:
      path: abi/digests.snapshot
      allow_missing: false
    engine:
      workers: 8
      fail_on_new: false
    report:
      markdown_path: build/abi-report.md
    manifest:
      path: build/abi-manifest.json

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - A mesma entrada sempre produz a mesma configuração final

Limites explícitos:
    - Não valida semântica (responsabilidade de `resolve_settings`)
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # PyYAML

from .errors import (
    ConfigNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge
from .settings import DEFAULT_CONFIG


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON e valida que a raiz é um dicionário.

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        ConfigNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    config_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Política de resolução:
        DEFAULT_CONFIG ← arquivo do projeto ← override local

    Args:
        config_path (Optional[str]): Arquivo de configuração do projeto.
        local_path (Optional[str]): Overrides locais (ex.: máquina de CI).

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        ConfigNotFoundError: Se `config_path` foi informado e não existe.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    effective = deep_merge(DEFAULT_CONFIG, {})

    if config_path is not None:
        effective = deep_merge(effective, _load_file(Path(config_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective
