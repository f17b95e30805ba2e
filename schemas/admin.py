from pydantic import BaseModel, Field


class RecountRequest(BaseModel):
    password: str = Field(..., description="Пароль для админ-операций")


class RecountResponse(BaseModel):
    confessions: int = Field(..., description="Признаний с исправленными счётчиками")
    photos: int = Field(..., description="Фотографий с исправленными счётчиками")
