from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class WireModel(BaseModel):
    """Value object serialized with camelCase keys (the blob and HTTP wire format)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
