from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, query_params, request_payload
from app.db.session import get_db
from app.models.user import User
from app.services.list_params import parse_list_params
from app.services.list_query import destroy_resource, list_resource, show_resource
from app.services.users import USERS, create_user_service, update_user_service

router = APIRouter()


@router.get("")
def list_users(
    params: dict[str, Any] = Depends(query_params),
    db: Session = Depends(get_db),
    caller: User = Depends(get_current_user),
):
    return list_resource(db, USERS, parse_list_params(params))


@router.get("/{user_id}")
def show_user(
    user_id: int,
    params: dict[str, Any] = Depends(query_params),
    db: Session = Depends(get_db),
    caller: User = Depends(get_current_user),
):
    return show_resource(db, USERS, user_id, params)


@router.post("", status_code=201)
def store_user(payload: dict = Depends(request_payload), db: Session = Depends(get_db)):
    return create_user_service(db, payload)


@router.api_route("/{user_id}", methods=["PUT", "PATCH"])
def update_user(
    user_id: int,
    payload: dict = Depends(request_payload),
    db: Session = Depends(get_db),
    caller: User = Depends(get_current_user),
):
    return update_user_service(db, user_id, payload, caller)


@router.delete("/{user_id}", status_code=204)
def destroy_user(user_id: int, db: Session = Depends(get_db), caller: User = Depends(get_current_user)):
    destroy_resource(db, USERS, user_id)
    return Response(status_code=204)
