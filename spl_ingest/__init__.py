"""Ingest SPL drug-label sections into a normalized, re-runnable relational model."""
