# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do abi-digest.

Garantem apenas que o pacote importa e expõe sua superfície pública.
Não validam comportamento de domínio.
"""


def test_smoke():
    """
    Smoke test mínimo: o pacote importa e declara versão e API pública.
    """
    import abi_digest

    assert abi_digest.__version__
    for name in abi_digest.__all__:
        assert hasattr(abi_digest, name), name
