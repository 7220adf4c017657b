"""
Module: registry.py
Description: Operation tag to strategy lookup table.

The table is built once when a handler's resources are created and is
read-only while batches are processed.
"""

from types import MappingProxyType
from typing import Iterable, Mapping

from fanout.errors import UnknownOperation
from fanout.models.record import OperationTag
from fanout.strategies.base import Strategy


class StrategyRegistry:
    """
    Read-only mapping from operation tag to strategy.

    Example:
        >>> registry = StrategyRegistry([RegisterDeviceStrategy(store), DeleteDeviceStrategy(store)])
        >>> registry.resolve("REGISTER_DEVICE")
        <RegisterDeviceStrategy ...>
    """

    def __init__(self, strategies: Iterable[Strategy]):
        """
        Build the lookup table.

        Raises:
            ValueError: If two strategies share a tag
        """
        table = {}
        for strategy in strategies:
            if strategy.tag in table:
                raise ValueError(f"Duplicate strategy for operation '{strategy.tag.value}'")
            table[strategy.tag] = strategy

        self._table: Mapping[OperationTag, Strategy] = MappingProxyType(table)

    @property
    def tags(self) -> frozenset:
        return frozenset(self._table)

    def resolve(self, tag: str) -> Strategy:
        """
        Strategy registered for a tag.

        Raises:
            UnknownOperation: If the tag is not an operation or has no strategy
        """
        try:
            operation = OperationTag(tag)
        except ValueError:
            raise UnknownOperation(str(tag))

        strategy = self._table.get(operation)
        if strategy is None:
            raise UnknownOperation(operation.value)
        return strategy

    def __contains__(self, tag: object) -> bool:
        try:
            return OperationTag(tag) in self._table
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._table)
