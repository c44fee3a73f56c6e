"""Caller-facing services built on the amortization engine."""
