"""Custom Dishka scopes for podstudio."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (config, engine, HTTP client, catalog)
    - UOW: Unit of Work, one per HTTP request (DB session, cookie session, handlers)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
