from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole


class Identity(BaseModel):
    """Identidad autenticada del llamante (id + rol) y sus datos de presentación."""
    id: int
    role: UserRole
    email: str
    first_name: str = ""
    last_name: str = ""

    model_config = {"from_attributes": True}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    key: str
    user: Identity


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str
    last_name: str
    role: UserRole = UserRole.MEMBER


class PersonInfo(BaseModel):
    """Datos de presentación de un usuario embebidos en sesiones y reservas."""
    id: int
    name: str
    email: Optional[str] = None
