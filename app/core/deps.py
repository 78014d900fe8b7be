from typing import Any

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.core.config import settings
from app.core.security import decode_jwt
from app.db.session import get_db
from app.models.user import User
from app.services.list_params import parse_bracket_params

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing access token")
    try:
        claims = decode_jwt(creds.credentials, settings.JWT_SECRET)
        user_id = int(claims.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid access token")
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid access token")
    return user

def convert_empty_strings_to_null(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: convert_empty_strings_to_null(item) for key, item in value.items()}
    if isinstance(value, list):
        return [convert_empty_strings_to_null(item) for item in value]
    if isinstance(value, str) and value == "":
        return None
    if isinstance(value, UploadFile) and not value.filename:
        return None
    return value

async def request_payload(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="JSON object expected")
    else:
        form = await request.form()
        body = parse_bracket_params(form.multi_items())
    return convert_empty_strings_to_null(body)

def query_params(request: Request) -> dict:
    return parse_bracket_params(request.query_params.multi_items())
