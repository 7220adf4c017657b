"""
Module: utils
Description: Package initialization for utility functions.

This package contains shared helpers used throughout the fan-out
handlers:
- logger: Structured logging configuration and helpers
- severity: Severity label classification
- batch_helpers: List chunking and batch size checks
"""

__all__ = []
