"""Shared request error handling and service resolution for storefront services."""

__all__ = []
