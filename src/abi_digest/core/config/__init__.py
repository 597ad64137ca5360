# src/abi_digest/core/config/__init__.py
"""
Camada de configuração do abi-digest (YAML/JSON, deep-merge, hash, settings).
"""
