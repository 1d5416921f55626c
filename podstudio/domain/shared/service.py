"""Base for stateless domain services."""

from dataclasses import dataclass
from typing import Any, dataclass_transform


@dataclass_transform()
class _AutoDataclass(type):
    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        service_cls = super().__new__(mcs, name, bases, namespace)
        return dataclass(service_cls) if any(isinstance(base, mcs) for base in bases) else service_cls


class Service(metaclass=_AutoDataclass):
    """Services hold only their collaborators, as ``_``-prefixed fields.

    Construct them by keyword, e.g. ``TokenService(_config=config.auth.jwt)``.
    """
