# src/abi_digest/report/__init__.py
"""
Relatórios derivados do resultado de uma run.
"""
