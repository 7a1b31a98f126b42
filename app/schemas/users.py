from __future__ import annotations

from typing import Literal

from pydantic import EmailStr, Field, field_validator, model_validator

from app.schemas.common import CamelModel, check_password_strength, check_person_name, check_phone


class LocationPreferences(CamelModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius: float = Field(default=25, ge=1, le=500)


class UpdateProfileRequest(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    location_preferences: LocationPreferences | None = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, value: str | None) -> str | None:
        return check_person_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, value: str | None) -> str | None:
        return check_person_name(value, "Last name")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return check_phone(value)

    @model_validator(mode="after")
    def validate_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self

    def profile_updates(self) -> dict:
        updates = self.model_dump(by_alias=True, exclude_unset=True)
        # exclude_unset também remove defaults aninhados (radius)
        if self.location_preferences is not None:
            updates["locationPreferences"] = self.location_preferences.model_dump(by_alias=True)
        return updates


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class AdminCreateUserRequest(CamelModel):
    email: EmailStr
    password: str
    role: Literal["consumer", "business_owner", "admin"] = "consumer"
    first_name: str
    last_name: str
    phone: str | None = None

    @field_validator("email")
    @classmethod
    def validate_lower_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, value: str) -> str:
        return check_person_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, value: str) -> str:
        return check_person_name(value, "Last name")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return check_phone(value)


class UserListQuery(CamelModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    role: Literal["consumer", "business_owner", "admin"] | None = None
