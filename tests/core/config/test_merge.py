# tests/core/config/test_merge.py
"""
Testes da política de deep-merge de configuração.

Os testes asseguram que:
- valores escalares são sobrescritos corretamente
- dicionários são mesclados de forma recursiva
- listas são sobrescritas integralmente
- conflitos de tipo são detectados e rejeitados explicitamente
- `None` marca chaves opcionais e não gera conflito
- objetos de entrada não são mutados durante o merge

Decisões arquiteturais:
    - O merge é determinístico e puramente funcional
    - Conflitos estruturais são tratados como erro fatal

Limites explícitos:
    - Não valida carregamento de arquivos YAML
    - Não valida hashing de configuração
"""

import pytest

try:
    from abi_digest.core.config.merge import deep_merge
    from abi_digest.core.config.errors import ConfigTypeConflictError
except Exception as e:  # noqa: BLE001
    deep_merge = None
    ConfigTypeConflictError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que os módulos de merge de config estejam disponíveis para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config merge modules. Implement:\n"
            "- src/abi_digest/core/config/merge.py (deep_merge)\n"
            "- src/abi_digest/core/config/errors.py (ConfigTypeConflictError)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_merge_simple_override():
    """
    Verifica o override de valores escalares sem mutar as entradas.

    Invariantes:
        - Apenas as chaves presentes no override são afetadas
        - `base` e `override` permanecem inalterados
    """
    _require_imports()
    base = {"engine": {"workers": 4, "fail_on_new": False}}
    override = {"engine": {"workers": 2}}
    out = deep_merge(base, override)
    assert out == {"engine": {"workers": 2, "fail_on_new": False}}
    assert base == {"engine": {"workers": 4, "fail_on_new": False}}
    assert override == {"engine": {"workers": 2}}


def test_merge_nested_dict_adds_keys():
    _require_imports()
    base = {"snapshot": {"path": "abi.snapshot"}}
    override = {"snapshot": {"allow_missing": True}, "report": {"markdown_path": "r.md"}}
    out = deep_merge(base, override)
    assert out == {
        "snapshot": {"path": "abi.snapshot", "allow_missing": True},
        "report": {"markdown_path": "r.md"},
    }


def test_merge_list_override_total():
    """
    Verifica que listas são sobrescritas integralmente durante o deep-merge.

    Decisões arquiteturais:
        - Listas não são mescladas elemento a elemento
        - Não há heurística implícita para merge de coleções ordenadas
    """
    _require_imports()
    base = {"catalog": {"modules": ["proto.block", "proto.tx"]}}
    override = {"catalog": {"modules": ["proto.block"]}}
    assert deep_merge(base, override) == {"catalog": {"modules": ["proto.block"]}}


def test_merge_none_marks_optional_keys():
    """
    Verifica que `None` pode substituir ou ser substituído sem conflito.

    Chaves opcionais (ex.: `report.markdown_path`) têm `None` como default
    e recebem strings do projeto; o projeto também pode desligá-las.
    """
    _require_imports()
    assert deep_merge({"report": {"markdown_path": None}}, {"report": {"markdown_path": "r.md"}}) == {
        "report": {"markdown_path": "r.md"}
    }
    assert deep_merge({"report": {"markdown_path": "r.md"}}, {"report": {"markdown_path": None}}) == {
        "report": {"markdown_path": None}
    }


def test_merge_type_conflict_raises():
    """
    Verifica que conflitos de tipo durante o deep-merge são rejeitados explicitamente.

    Invariantes:
        - A exceção utilizada é específica (`ConfigTypeConflictError`)
        - Nenhum merge parcial é produzido em caso de conflito
    """
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"workers": 4}}, {"engine": "fast"})
    with pytest.raises(ConfigTypeConflictError):
        deep_merge({"engine": {"workers": 4}}, {"engine": {"workers": "4"}})
