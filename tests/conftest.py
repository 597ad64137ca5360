# tests/conftest.py
"""
Fixtures compartilhados para testes do abi-digest.

Este módulo fornece:
- um DigestCache novo por teste (sem vazamento de digests entre testes)
- isolamento do cache e do catálogo padrão do processo
- digests sintéticos (d1..d4) para os cenários literais de verificação
- YAMLs de configuração semelhantes ao uso real do projeto
- uma fábrica de EngineSettings apontando para `tmp_path`
- uma fábrica de cadeias cíclicas de tipos com contagem de `abi_shape`

Invariantes:
    - Nenhuma fixture compartilha estado mutável entre testes
    - Imports do core são feitos de forma lazy dentro das fixtures
"""

import pytest


@pytest.fixture(autouse=True)
def _isolated_process_defaults():
    """Descarta o cache e o catálogo padrão antes e depois de cada teste."""
    from abi_digest.core.catalog.registry import reset_default_catalog
    from abi_digest.core.digest.cache import reset_default_cache

    reset_default_cache()
    reset_default_catalog()
    yield
    reset_default_cache()
    reset_default_catalog()


@pytest.fixture
def cache():
    from abi_digest.core.digest.cache import DigestCache

    return DigestCache()


@pytest.fixture
def digests():
    """
    Digests sintéticos para os cenários de verificação.

    Returns:
        dict: {"d1": Digest, "d2": Digest, "d3": Digest, "d4": Digest}
    """
    from abi_digest.core.types import Digest

    return {f"d{i}": Digest(bytes([i]) * 32) for i in range(1, 5)}


@pytest.fixture
def ident():
    """Atalho para TypeIdentity.parse."""
    from abi_digest.core.shape.identity import TypeIdentity

    return TypeIdentity.parse


@pytest.fixture
def settings_for(tmp_path):
    """
    Fábrica de EngineSettings com snapshot em `tmp_path`.

    Aceita overrides no formato da configuração (dict aninhado).
    """
    from abi_digest.core.config.merge import deep_merge
    from abi_digest.core.config.settings import resolve_settings

    def _make(overrides=None):
        base = {
            "snapshot": {"path": str(tmp_path / "abi" / "digests.snapshot")},
            "engine": {"workers": 2},
        }
        return resolve_settings(deep_merge(base, overrides or {}))

    return _make


@pytest.fixture
def cyclic_chain():
    """
    Fábrica de cadeias cíclicas Link0 → (Link1, Link1) → ... → Link0.

    Cada tipo referencia o próximo duas vezes; sem memorização o número de
    travessias dobraria a cada elo. Cada chamada a `abi_shape` é registrada
    em `calls` pelo `__abi_name__` do tipo.
    """
    from abi_digest.core.shape.nodes import StructShape

    def _make(length, calls):
        chain = []

        def abi_shape(cls, walker):
            calls.append(cls.__abi_name__)
            following = chain[(cls.position + 1) % length]
            return StructShape((walker.walk(following), walker.walk(following)))

        for position in range(length):
            namespace = {
                "__abi_name__": f"chain.Link{position}",
                "position": position,
                "abi_shape": classmethod(abi_shape),
            }
            chain.append(type(f"Link{position}", (), namespace))
        return chain

    return _make


@pytest.fixture
def project_like_config_yaml() -> str:
    """Configuração do projeto (abi-digest.yaml) semelhante ao uso real."""

    return """\
snapshot:
  path: abi/digests.snapshot
  allow_missing: false
engine:
  workers: 8
  fail_on_new: false
report:
  markdown_path: build/abi-report.md
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """Override local (ex.: máquina de CI)."""

    return """\
engine:
  workers: 2
manifest:
  path: build/abi-manifest.json
"""
