"""Recycling point finder: nearby search API and point import tooling."""

__all__ = []
