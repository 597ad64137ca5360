# src/abi_digest/core/config/errors.py
"""
Exceções canônicas da camada de configuração do abi-digest.

Hierarquia:
    ConfigError
      ├── ConfigNotFoundError          → arquivo de configuração ausente
      ├── UnsupportedConfigFormatError → extensão desconhecida
      ├── InvalidConfigRootTypeError   → raiz não é dict
      ├── ConfigTypeConflictError      → conflito de tipos no deep-merge
      └── InvalidConfigValueError      → valor fora do domínio aceito

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção daqui representa falha de digest ou de snapshot
"""


class ConfigError(Exception):
    """Base para erros de carregamento, merge e validação de configuração."""


class ConfigNotFoundError(ConfigError):
    """
    O arquivo de configuração base não existe no caminho indicado.

    Overrides locais ausentes não são erro; apenas o arquivo base é
    obrigatório quando informado.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz da configuração não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"workers": 4}}
        - override: {"engine": "fast"}
    """


class InvalidConfigValueError(ConfigError):
    """
    Valor de configuração fora do domínio aceito.

    Exemplos:
        - `engine.workers` menor que 1
        - `snapshot.path` vazio
        - `engine.fail_on_new` não booleano
    """
