"""Base model configuration for tree and report structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable base model; tree snapshots are shared between components."""

    model_config = ConfigDict(frozen=True)
