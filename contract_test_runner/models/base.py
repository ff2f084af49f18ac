"""Base model shared by the descriptors loaded from backend output."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")
