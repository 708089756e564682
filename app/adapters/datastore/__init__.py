"""Relational data store adapters."""
