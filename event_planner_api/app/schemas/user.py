"""
Pydantic models for user data.

``UserCredentials`` is the request body for both registration and
login.  Blank values are rejected by ``UserService`` rather than by
the schema so that both endpoints report them the same way.
``UserRead`` never includes the password hash.
"""

from pydantic import BaseModel, Field


class UserCredentials(BaseModel):
    username: str = Field(..., examples=["alice"])
    password: str = Field(..., examples=["strongpassword"])


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    username: str

    model_config = {
        "from_attributes": True,
    }


class RegisterResponse(BaseModel):
    message: str = "User registered"


class TokenResponse(BaseModel):
    token: str
