"""
Capability interfaces for the pieces a chunk-oriented step is built from.

A step only talks to these three interfaces, so a different source format
or a different store can be plugged in without touching the step.
"""

from abc import ABC, abstractmethod
from typing import Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")
I = TypeVar("I")  # noqa: E741
O = TypeVar("O")  # noqa: E741


class ItemReader(ABC, Generic[T]):
    """
    Produces a finite, lazy sequence of items from an underlying resource.

    The resource is acquired in open() and released in close(); use the
    reader as a context manager to guarantee release. A reader restarts
    from the beginning only through a fresh open().
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying resource and position before the first item."""
        pass

    @abstractmethod
    def read(self) -> Optional[T]:
        """
        Return the next item, or None once the source is exhausted.

        Raises:
            ParseError: If the next raw item cannot be parsed
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Safe to call more than once."""
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.read()
            if item is None:
                return
            yield item


class ItemProcessor(ABC, Generic[I, O]):
    """
    Maps one input item to one output item, or to None to skip it.

    Implementations must be free of I/O and must not mutate their input.
    """

    @abstractmethod
    def process(self, item: I) -> Optional[O]:
        """
        Transform one item.

        Raises:
            TransformError: If the item is not valid input
        """
        pass


class ItemWriter(ABC, Generic[T]):
    """
    Persists a chunk of items as one atomic unit.
    """

    @abstractmethod
    def write(self, chunk: List[T]) -> int:
        """
        Persist every item of the chunk, or none of them.

        Returns:
            Number of items written

        Raises:
            WriteError: If the store rejected the chunk (already rolled back)
        """
        pass


__all__ = ["ItemReader", "ItemProcessor", "ItemWriter"]
