# src/abi_digest/core/snapshot/__init__.py
"""
Arquivo de snapshot: formato, leitura, escrita atômica e hash.
"""
