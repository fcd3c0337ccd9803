from beanie import Document
from pydantic import EmailStr, Field


class User(Document):
    email: EmailStr = Field(unique=True)
    role: str = "employee"  # "admin" | "employee"
    is_active: bool = True

    class Settings:
        name = "users"
