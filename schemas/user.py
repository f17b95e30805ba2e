from typing import Optional, List, Literal
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from core.config import settings
from models.user import BRANCHES
from schemas.photo import PhotoRead

YearLiteral = Literal["1st", "2nd", "3rd", "Final"]
GenderLiteral = Literal["Male", "Female", "Non-binary", "Other"]
LookingForLiteral = Literal["Relationship", "Friendship", "Casual", "Not sure"]


class PublicUserRead(BaseModel):
    id: int = Field(..., description="PK в базе данных")
    name: str = Field(..., description="Имя пользователя")
    college: str = Field(..., description="Колледж")
    photos: List[PhotoRead] = Field([], description="Фотографии профиля")
    bio: str = Field("", description="О себе")
    age: Optional[int] = Field(None, description="Возраст")
    year: Optional[str] = Field(None, description="Курс")
    branch: Optional[str] = Field(None, description="Направление обучения")
    gender: Optional[str] = Field(None, description="Пол")
    interests: List[str] = Field([], description="Интересы")
    looking_for: str = Field("Not sure", alias="lookingFor", description="Что ищет пользователь")

    class Config:
        from_attributes = True
        validate_by_name = True


class ProfileRead(PublicUserRead):
    email: str = Field(..., description="Email пользователя")
    created_at: datetime = Field(..., alias="createdAt", description="Дата и время создания аккаунта")


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Имя пользователя")
    bio: Optional[str] = Field(None, max_length=500, description="О себе")
    age: Optional[int] = Field(None, ge=18, le=30, description="Возраст: от 18 до 30")
    year: Optional[YearLiteral] = Field(None, description="Курс")
    branch: Optional[str] = Field(None, description="Код направления обучения")
    gender: Optional[GenderLiteral] = Field(None, description="Пол")
    interests: Optional[List[str]] = Field(None, max_length=settings.MAX_INTERESTS, description="Список интересов")
    looking_for: Optional[LookingForLiteral] = Field(None, alias="lookingFor")

    class Config:
        validate_by_name = True

    @field_validator("branch")
    @classmethod
    def branch_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in BRANCHES:
            raise ValueError(f"Unknown branch '{value}'")
        return value

    @field_validator("interests")
    @classmethod
    def interests_are_short_and_unique(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        cleaned: List[str] = []
        for interest in value:
            interest = interest.strip()
            if not interest:
                continue
            if len(interest) > 50:
                raise ValueError("Each interest must be at most 50 characters")
            if interest not in cleaned:
                cleaned.append(interest)
        return cleaned


class BranchOption(BaseModel):
    code: str
    name: str


class ProfileOptions(BaseModel):
    years: List[str]
    branches: List[BranchOption]
    genders: List[str]
    looking_for: List[str] = Field(..., alias="lookingFor")
    age_range: dict[str, int] = Field(..., alias="ageRange")

    class Config:
        validate_by_name = True


class DiscoverResponse(BaseModel):
    users: List[PublicUserRead]
