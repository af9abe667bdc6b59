"""State layer.

This package is the single owner of the live pose and the current game
session, and of the reconciliation of network and DOM signals into round
lifecycle events.
"""
