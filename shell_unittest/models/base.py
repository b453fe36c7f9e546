"""Base class for the engine's pydantic models."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model for settings parsed from the command line."""

    model_config = ConfigDict(frozen=True)
