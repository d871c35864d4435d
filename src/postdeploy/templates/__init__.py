"""Bundled configuration templates."""
