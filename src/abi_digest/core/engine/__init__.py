# src/abi_digest/core/engine/__init__.py
"""
Engine de verificação: máquina de estados, cálculo paralelo e freeze.
"""
