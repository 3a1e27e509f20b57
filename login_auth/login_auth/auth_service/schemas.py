from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class Credentials(BaseModel):
    username: str
    password: SecretStr


class IdentityClaim(BaseModel):
    """The only data ever embedded in a token."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    username: str


class Token(BaseModel):
    token: str


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    first_name: str
    last_name: str
    gender: Literal["MALE", "FEMALE"]
    birthdate: date
    email: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    gender: str
    birthdate: date
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
