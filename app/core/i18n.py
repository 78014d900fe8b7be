from __future__ import annotations

from app.core.config import settings

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "roles.errors.permissions": "You do not have enough permissions to modify this user",
        "records.errors.not_found": "Record not found",
        "auth.password_updated": "password-updated",
        "validation.required": "The :attribute field is required.",
        "validation.string": "The :attribute field must be a string.",
        "validation.array": "The :attribute field must be an array.",
        "validation.max": "The :attribute field must not be greater than :max characters.",
        "validation.same": "The :attribute field must match :other.",
        "validation.confirmed": "The :attribute field confirmation does not match.",
        "validation.unique": "The :attribute has already been taken.",
        "validation.exists": "The selected :attribute is invalid.",
        "validation.password": "The :attribute field must be at least :min characters.",
        "validation.file": "The :attribute field must be a file.",
        "validation.mimes": "The :attribute field must be a file of type: :values.",
        "validation.current_password": "The password is incorrect.",
        "validation.already_exists": "The :table table already has record \":record\"",
        "validation.integer": "The :attribute field must be an integer.",
        "validation.date": "The :attribute field must be a valid date.",
    },
}


def translate(key: str, locale: str | None = None) -> str:
    catalogue = MESSAGES.get(locale or settings.APP_LOCALE) or MESSAGES["en"]
    return catalogue.get(key, key)
