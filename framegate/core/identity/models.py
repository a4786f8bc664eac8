from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MAX_LOCAL_USER_ID_LENGTH = 128


class Principal(BaseModel):
    """The local user on whose behalf a frame nonce is checked, plus the linked remote id."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    local_user_id: str = Field(min_length=1, max_length=MAX_LOCAL_USER_ID_LENGTH)
    linked_user_id: int = Field(gt=0)
