"""
Flock Backend — Auth Request Schemas
=====================================

Only the shape is validated here: fields present, strings, and lengths that
fit the users table columns. Business rules (email format, uniqueness,
password length) live in AuthService so each failure gets its own message.
"""

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=100, description="Display name")
    username: str = Field(min_length=1, max_length=50, description="Unique handle")
    email: str = Field(max_length=255, description="Unique email address")
    password: str = Field(description="At least 6 characters")


class LoginRequest(BaseModel):
    username: str
    password: str
