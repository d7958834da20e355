"""
User directory routes: registration, search, and role management.

POST /users is called by the frontend after every sign-in with the identity
provider; it answers 201 for a new user and 200 for a returning one.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from localmarket.dependencies import get_user_service
from localmarket.schemas.common import ErrorResponse, to_documents
from localmarket.schemas.user import RoleResponse, RoleUpdate, UserCreate
from localmarket.services.user_service import UserService

router = APIRouter(tags=["Users"])


@router.post(
    "/users",
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "User already registered; last login refreshed"},
        400: {"description": "Invalid body", "model": ErrorResponse},
    },
    summary="Register or refresh a user",
)
async def register_user(
    body: UserCreate,
    response: Response,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user, created = await service.register(body)
    if not created:
        response.status_code = status.HTTP_200_OK
    return user.to_document()


@router.get("/users", summary="List users (admin)")
async def list_users(
    search: Optional[str] = Query(default=None, description="Partial email or name"),
    service: UserService = Depends(get_user_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.list_users(search))


@router.get("/users/{email}/role", response_model=RoleResponse, summary="Stored role of a user")
async def get_user_role(
    email: str,
    service: UserService = Depends(get_user_service),
) -> RoleResponse:
    return RoleResponse(role=await service.get_role(email))


@router.patch(
    "/users/{user_id}/role",
    responses={404: {"description": "No such user", "model": ErrorResponse}},
    summary="Change a user's role (admin)",
)
async def set_user_role(
    user_id: str,
    body: RoleUpdate,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    user = await service.set_role(user_id, body.role)
    return user.to_document()
