from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.errors import AuthorizationError, BadRequestError, FileOperationError, NotFoundError, ValidationError
from app.core.security import hash_password, issue_access_token
from app.core.strings import lang
from app.models.role import Role
from app.models.user import User
from app.schemas.users import UserStore, UserUpdate
from app.services.file_storage import get_file_storage
from app.services.list_query import ResourceDefinition
from app.services.serialization import record_to_dict
from app.services.validation import already_exists, missing_references, parse_or_422, raise_for_errors

_LOG = logging.getLogger("app.users")

USER_PROFILE_FIELDS = ("about", "email", "lang", "name", "phone")
USER_IMAGE_HINT = "user_img"


def _users_base_query(db: Session) -> Query:
    return db.query(User).filter(User.roles.any())


def _users_search(query: Query, term: str) -> Query:
    pattern = f"%{term.lower()}%"
    return query.filter(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))


USERS = ResourceDefinition(model=User, base_query=_users_base_query, search=_users_search)


def _image_prefix(user: User) -> str:
    return f"{settings.USER_IMAGE_PREFIX.rstrip('/')}/{user.id}"


def _uploaded_file(value: Any) -> UploadFile | None:
    if isinstance(value, UploadFile) and value.filename:
        return value
    return None


def _sync_roles(db: Session, user: User, role_ids: Iterable[int] | None) -> None:
    ids = list(role_ids or [])
    user.roles = db.query(Role).filter(Role.id.in_(ids)).all() if ids else []


def _remove_stale_image(key: str | None) -> None:
    if not key:
        return
    try:
        get_file_storage().remove(key)
    except FileOperationError:
        # the row no longer references the key, so only the object is left behind
        _LOG.warning("user_image_orphaned key=%s", key)


def user_payload(user: User) -> dict[str, Any]:
    return record_to_dict(user)


def create_user_service(db: Session, data: Mapping[str, Any]) -> dict[str, Any]:
    payload = parse_or_422(UserStore, data)
    errors: dict[str, list[str]] = {}
    if already_exists(db, "users", "email", payload.email):
        errors["email"] = [lang("validation.unique", "email")]
    errors.update(missing_references(db, "roles", "id", "roles", payload.roles or []))
    raise_for_errors(errors)

    upload = _uploaded_file(payload.img_url)
    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        phone=payload.phone,
        about=payload.about,
        lang=payload.lang,
    )
    try:
        db.add(user)
        db.flush()
        _sync_roles(db, user, payload.roles)
        if upload is not None:
            try:
                user.img_url = get_file_storage().save(upload, _image_prefix(user), USER_IMAGE_HINT)
            except FileOperationError as exc:
                db.rollback()
                _LOG.warning("user_create_rolled_back email=%s reason=file", payload.email)
                raise BadRequestError.for_field("img_url", str(exc))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError.for_field("email", lang("validation.unique", "email"))
    db.refresh(user)

    token = issue_access_token(user.id)
    _LOG.info("user_registered id=%s email=%s", user.id, user.email)
    return {**user_payload(user), "token": token}


def update_user_service(db: Session, user_id: int, data: Mapping[str, Any], caller: User) -> dict[str, Any]:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(message=lang("records.errors.not_found"))

    if caller.role_level > user.role_level:
        _LOG.info("user_update_forbidden caller=%s target=%s", caller.id, user.id)
        raise AuthorizationError.for_field("role_id", lang("roles.errors.permissions"))

    payload = parse_or_422(UserUpdate, data)
    submitted = payload.model_fields_set
    errors: dict[str, list[str]] = {}
    if "email" in submitted and already_exists(db, "users", "email", payload.email, user.id):
        errors["email"] = [lang("validation.already_exists", "users", payload.email)]
    if "roles" in submitted:
        errors.update(missing_references(db, "roles", "id", "roles", payload.roles or []))
    raise_for_errors(errors)

    for key in USER_PROFILE_FIELDS:
        if key in submitted:
            setattr(user, key, getattr(payload, key))
    if payload.password:
        user.password_hash = hash_password(payload.password)
    if "roles" in submitted:
        _sync_roles(db, user, payload.roles)

    # the previous object is only removed once the row no longer points at it
    stale_image = None
    saved_image = None
    upload = _uploaded_file(payload.img_url) if "img_url" in submitted else None
    if upload is not None:
        try:
            saved_image = get_file_storage().save(upload, _image_prefix(user))
        except FileOperationError as exc:
            db.rollback()
            raise BadRequestError.for_field("img_url", str(exc))
        stale_image, user.img_url = user.img_url, saved_image
    elif "img_url" in submitted and payload.img_url is None:
        stale_image, user.img_url = user.img_url, None

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        _remove_stale_image(saved_image)
        raise ValidationError.for_field("email", lang("validation.unique", "email"))
    _remove_stale_image(stale_image)
    db.refresh(user)
    return user_payload(user)
