"""
Module: batch_helpers.py
Description: Utility functions for batch operations.

Provides helpers for splitting token lists and queue entries into
bounded groups before they are written or published.

Key Components:
- chunk_list(): Split lists into smaller chunks
- validate_batch_size(): Validate batch size constraints

Dependencies: typing
Author: Fan-out Platform Team
"""

from typing import Any, List, Sequence, TypeVar

T = TypeVar('T')


def chunk_list(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """
    Split a sequence into smaller chunks of specified size.

    Every chunk holds exactly chunk_size items except the last one,
    which holds the remainder when len(items) is not a multiple of
    chunk_size.

    Args:
        items: Sequence to split into chunks
        chunk_size: Maximum size of each chunk

    Returns:
        List of chunks, where each chunk is a list of items

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ValueError("items must be a sequence")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


def validate_batch_size(items: List[Any], max_size: int) -> None:
    """
    Validate that a batch doesn't exceed the maximum allowed size.

    Raises:
        ValueError: If batch is empty or exceeds max_size

    Example:
        >>> validate_batch_size([1, 2, 3], 10)  # OK
        >>> validate_batch_size(list(range(11)), 10)  # Raises ValueError
    """
    if not isinstance(items, list):
        raise ValueError("items must be a list")
    if not items:
        raise ValueError("batch cannot be empty")
    if len(items) > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")
