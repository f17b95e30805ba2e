from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """
    Регистрация пользователя. Пароль и сессии обслуживает внешний
    сервис авторизации; здесь создаётся только запись пользователя.
    """
    name: str = Field(..., min_length=1, max_length=100, description="Имя пользователя")
    email: EmailStr = Field(..., description="Email (уникальный)")
    college: str = Field(..., min_length=1, max_length=200, description="Колледж пользователя")


class TokenResponse(BaseModel):
    """
    Ответ при успешной регистрации.
    """
    access_token: str
    token_type: Literal["bearer"]
    user_id: int
    expires_in_ms: int
    has_profile: bool = False
    college: Optional[str] = None
