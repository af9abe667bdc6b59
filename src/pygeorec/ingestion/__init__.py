"""Ingestion layer.

This package contains adapters that receive raw page signals (intercepted
network responses, DOM mutations, the inline page payload) and turn them
into typed domain objects for the reconciler.
"""

__all__: list[str] = []
