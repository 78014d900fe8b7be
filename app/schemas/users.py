from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.strings import lang


def _label(field_name: str) -> str:
    return field_name.replace("_", " ")


def _checked_password(value: str, field_name: str) -> str:
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(lang("validation.password", _label(field_name), settings.PASSWORD_MIN_LENGTH))
    return value


def _checked_image(value: Any, field_name: str) -> Any:
    if value is None:
        return None
    if not isinstance(value, UploadFile):
        raise ValueError(lang("validation.file", _label(field_name)))
    name = str(value.filename or "")
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    types = settings.user_image_types_list
    if extension not in types:
        raise ValueError(lang("validation.mimes", _label(field_name), ", ".join(types)))
    return value


class UserStore(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(max_length=200)
    email: EmailStr
    img_url: Optional[Any] = None
    # declared before password so the password validator can compare both
    confirmation: Optional[str] = None
    password: str
    roles: Optional[List[int]] = None
    phone: Optional[str] = Field(None, max_length=64)
    about: Optional[str] = None
    lang: Optional[str] = Field(None, max_length=2)

    @field_validator("img_url")
    @classmethod
    def validate_img_url(cls, value: Any, info: ValidationInfo) -> Any:
        return _checked_image(value, info.field_name)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("confirmation"):
            raise ValueError(lang("validation.same", "password", "confirmation"))
        return _checked_password(value, info.field_name)


class UserUpdate(BaseModel):
    """Partial update; only fields present in ``model_fields_set`` are applied."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    img_url: Optional[Any] = None
    password: Optional[str] = None
    confirmation: Optional[str] = None
    roles: Optional[List[int]] = None
    phone: Optional[str] = Field(None, max_length=64)
    town_id: Optional[Any] = None
    about: Optional[str] = None
    lang: Optional[str] = Field(None, max_length=2)

    @field_validator("name", "email", "lang")
    @classmethod
    def validate_submitted_value(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(lang("validation.required", _label(info.field_name)))
        return value

    @field_validator("img_url")
    @classmethod
    def validate_img_url(cls, value: Any, info: ValidationInfo) -> Any:
        return _checked_image(value, info.field_name)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if not value:
            return value
        return _checked_password(value, info.field_name)

    @field_validator("confirmation")
    @classmethod
    def validate_confirmation(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None or "password" not in info.data:
            return value
        if value != info.data["password"]:
            raise ValueError(lang("validation.same", "confirmation", "password"))
        return value


class PasswordUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_password: str
    password_confirmation: Optional[str] = None
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str, info: ValidationInfo) -> str:
        _checked_password(value, info.field_name)
        if value != info.data.get("password_confirmation"):
            raise ValueError(lang("validation.confirmed", "password"))
        return value
