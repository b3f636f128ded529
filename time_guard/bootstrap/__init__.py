"""Composition root for wiring dependencies.

This package centralizes infrastructure-aware wiring so the API layer and
host applications can depend on the guard without importing adapters
directly.
"""
