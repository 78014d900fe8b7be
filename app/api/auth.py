from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, request_payload
from app.core.security import hash_password
from app.core.strings import lang
from app.db.session import get_db
from app.models.user import User
from app.schemas.users import PasswordUpdate
from app.services.validation import check_current_password, parse_or_422

router = APIRouter()


@router.put("/password")
def update_password(
    payload: dict = Depends(request_payload),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    data = parse_or_422(PasswordUpdate, payload)
    check_current_password(data.current_password, user.password_hash)
    user.password_hash = hash_password(data.password)
    db.commit()
    return {"status": lang("auth.password_updated")}


@router.get("/verify-email")
def email_verification_prompt(status: Optional[str] = None, user: User = Depends(get_current_user)):
    if user.has_verified_email():
        return {"verified": True, "redirect": settings.HOME_URL}
    return {"verified": False, "status": status}
