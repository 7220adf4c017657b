"""
Package: dispatch
Description: Strategy registry and batch dispatcher.
"""

from .dispatcher import BatchDispatcher, deadline_from_context
from .registry import StrategyRegistry

__all__ = [
    "BatchDispatcher",
    "StrategyRegistry",
    "deadline_from_context",
]
