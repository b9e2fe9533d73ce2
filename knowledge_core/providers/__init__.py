"""Concrete adapters for the interfaces in :mod:`knowledge_core.interfaces`."""
