"""Marker base for domain ports."""

from typing import Protocol


class Port(Protocol):
    """Base for ports: interfaces the domain defines and adapters implement.

    Ports are declared as ``class FooRepository(Port, Protocol)`` so that both
    structural typing and explicit subclassing by adapters work.
    """
