"""Upstream-facing services."""
