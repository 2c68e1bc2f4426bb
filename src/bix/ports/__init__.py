"""Interfaces for external systems."""
