# src/abi_digest/version.py
__version__ = "0.1.0"
