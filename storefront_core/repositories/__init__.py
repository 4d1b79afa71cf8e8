"""Collaborator boundaries consumed by route handlers."""
