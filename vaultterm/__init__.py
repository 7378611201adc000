"""Vault-Tec themed terminal narrative engine."""

__version__ = "0.1.0"
