from typing import Optional
from pydantic import BaseModel, Field


class UserUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=20)

    model_config = {"extra": "forbid"}
