from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SignupRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None  # só vale quando quem pede é admin


class UserUpdate(BaseModel):
    username: Optional[str] = None
    role: Optional[str] = None
