"""Shared model base classes."""

from .entity import Aggregate, Entity

__all__ = ["Aggregate", "Entity"]
