"""Outbound HTTP client helpers."""
