from .scope import Scope

__all__ = ["Scope"]
