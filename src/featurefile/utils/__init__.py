"""Utility functions for the feature file layer."""

from .string_ops import NAME_CAPACITY, bounded_copy, replace_wildcard

__all__ = ["NAME_CAPACITY", "bounded_copy", "replace_wildcard"]
