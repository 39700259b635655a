"""Shared builders for synthetic audit documents."""
