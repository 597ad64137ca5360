# src/abi_digest/core/verify/__init__.py
"""
Comparação entre digests vivos e snapshot congelado.
"""
