# src/abi_digest/core/shape/__init__.py
"""
Decomposição de tipos em shapes canônicos.

Submódulos importados explicitamente; este pacote não reexporta nada para
evitar ciclos de import com `core.types`.
"""
