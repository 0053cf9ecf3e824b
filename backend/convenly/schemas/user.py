"""
Pydantic schemas for user-related request/response validation.

Email and password rules live in the identity value objects; these schemas only
check presence so the service reports the specific policy error.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from convenly.domain.identity import Role


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: Role  # serialized as its integer value
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusResponse(BaseModel):
    status: str = "ok"
