"""Event preprocessing."""

from .default import DefaultPreprocessor

__all__ = ["DefaultPreprocessor"]
