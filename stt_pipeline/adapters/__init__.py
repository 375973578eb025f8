"""Adapters between engine output and the core IR."""
