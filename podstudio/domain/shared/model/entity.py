from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Mutable domain object with identity."""

    model_config = ConfigDict(validate_assignment=False, arbitrary_types_allowed=True)


class Aggregate(Entity):
    """Consistency boundary; repositories load and save whole aggregates."""
