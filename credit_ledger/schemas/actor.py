"""Actor schema: who performs a ledger mutation."""

from pydantic import BaseModel, ConfigDict, Field


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1, max_length=64)
    user_name: str = Field(min_length=1, max_length=255)
