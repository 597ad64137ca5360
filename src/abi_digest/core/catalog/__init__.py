# src/abi_digest/core/catalog/__init__.py
"""
Catálogo de pontos de entrada do motor de digest.
"""
