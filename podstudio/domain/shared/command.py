"""Commands are validated inputs; handlers turn one command into one result."""

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, dataclass_transform

from pydantic import BaseModel


class Command(BaseModel): ...


class Result(BaseModel): ...


CommandT = TypeVar("CommandT", bound=Command)
ResultT = TypeVar("ResultT", bound=Result)


@dataclass_transform()
class _HandlerMeta(ABCMeta):
    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        handler_cls = super().__new__(mcs, name, bases, namespace)
        # The base itself stays a plain ABC
        is_subclass = any(isinstance(base, mcs) for base in bases)
        return dataclass(handler_cls) if is_subclass else handler_cls


class CommandHandler(Generic[CommandT, ResultT], metaclass=_HandlerMeta):
    """Handlers declare their collaborators as fields; the container fills them in."""

    @abstractmethod
    async def run(self, cmd: CommandT) -> ResultT: ...
