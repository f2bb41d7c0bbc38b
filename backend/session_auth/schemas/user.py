"""Pydantic schemas for Users and login."""
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field
from pydantic.networks import validate_email

ColorTheme = Literal["light", "dark"]
Language = Literal["en", "pt"]


def normalize_email(value: str) -> str:
    """Normalize an address the way ``EmailStr`` stores it; unparseable input is returned as-is."""
    try:
        return validate_email(value)[1]
    except ValueError:
        return value


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    password: str = Field(min_length=8)
    color_theme: ColorTheme = "light"
    language: Language = "en"


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=8)
    color_theme: Optional[ColorTheme] = None
    language: Optional[Language] = None


class LoginRequest(BaseModel):
    email: str = ""
    phone: str = ""
    password: str


class FindById(BaseModel):
    id: int = Field(gt=0)


class FindByEmailOrPhone(BaseModel):
    email: str = ""
    phone: str = ""


class UserOut(BaseModel):
    """Outward user shape — never carries password_hash or deleted_at."""

    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    color_theme: str
    lang: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SessionOut(BaseModel):
    user: UserOut
    token: str
