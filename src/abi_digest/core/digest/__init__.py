# src/abi_digest/core/digest/__init__.py
"""
Redução de shapes a digests e cache concorrente de digests.
"""
