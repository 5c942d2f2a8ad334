"""
api/routes/users.py -- User directory REST endpoints.

Routes:
  GET    /users/             -- list {name, role} for all users (admin, doctor)
  POST   /users/             -- create user (admin)
  GET    /users/{username}   -- user record (owner or admin)
  PUT    /users/{username}   -- change name; admins may also change role (owner or admin)
  DELETE /users/{username}   -- delete user (admin)

PUT/DELETE /users/ and POST /users/{username} are answered with
400 {"error": 400, "message": "Invalid request"} for existing clients.

UserDirectory returns a Result for every domain outcome; _respond() maps its
Status to an HTTP code 1:1.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import BadRequestResponse, ErrorResponse, StatusMessage, UserRecord, UserSummary
from auth.dependencies import require
from auth.directory import Result, Status, UserDirectory
from auth.models import Identity, Role, RoleSet, SelfOnly

# Auth policy (declared once; an unknown role here fails at import time):
# - GET    /users/:           admin, doctor
# - POST   /users/:           admin
# - GET    /users/{username}: the user themself, or admin
# - PUT    /users/{username}: the user themself, or admin; role changes admin only
# - DELETE /users/{username}: admin
# - everything else:          public 400 stubs
_STAFF = RoleSet.of(Role.admin, Role.doctor)
_ADMIN = RoleSet.of(Role.admin)
_OWNER_OR_ADMIN = SelfOnly.of(Role.admin)

router = APIRouter()

_HTTP_STATUS = {
    Status.ok: 200,
    Status.created: 201,
    Status.updated: 200,
    Status.deleted: 200,
    Status.not_found: 404,
    Status.conflict: 409,
    Status.invalid_input: 400,
}


def _directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def _respond(result: Result) -> JSONResponse:
    code = _HTTP_STATUS[result.status]
    if result.status is Status.invalid_input:
        content = BadRequestResponse(message=result.message).model_dump()
    elif not result.ok:
        content = ErrorResponse(status=code, error=result.message).model_dump()
    elif result.status in (Status.ok, Status.updated):
        content = UserRecord(**result.data).model_dump(mode="json")
    else:
        content = StatusMessage(status=code, message=result.message).model_dump()
    return JSONResponse(status_code=code, content=content)


def _invalid_request() -> JSONResponse:
    return JSONResponse(status_code=400, content=BadRequestResponse().model_dump())


async def _json_object(request: Request) -> dict[str, Any]:
    """Read the body as a JSON object.

    Declared after the policy dependency on each route. FastAPI solves
    dependencies in order, so the token is checked before the body is read.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail=BadRequestResponse(message="Incomplete parameters").model_dump())
    return body


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("/users/", response_model=list[UserSummary])
def list_users(request: Request, caller: Identity = Depends(require(_STAFF))) -> list[UserSummary]:
    """Return name and role for every user."""
    return [UserSummary(**row) for row in _directory(request).list_users()]


@router.post(
    "/users/",
    status_code=201,
    response_model=StatusMessage,
    responses={400: {"model": BadRequestResponse}, 409: {"model": ErrorResponse}},
)
def create_user(
    request: Request,
    caller: Identity = Depends(require(_ADMIN)),
    body: dict[str, Any] = Depends(_json_object),
) -> JSONResponse:
    """Create a user from name, username, password and role."""
    return _respond(_directory(request).create_user(body))


@router.put("/users/", include_in_schema=False)
@router.delete("/users/", include_in_schema=False)
async def users_collection_not_supported() -> JSONResponse:
    return _invalid_request()


# ---------------------------------------------------------------------------
# Single user
# ---------------------------------------------------------------------------


@router.get("/users/{username}", response_model=UserRecord, responses={404: {"model": ErrorResponse}})
def get_user(
    request: Request,
    username: str,
    caller: Identity = Depends(require(_OWNER_OR_ADMIN)),
) -> JSONResponse:
    return _respond(_directory(request).get_user(username))


@router.post("/users/{username}", include_in_schema=False)
async def user_post_not_supported(username: str) -> JSONResponse:
    return _invalid_request()


@router.put(
    "/users/{username}",
    response_model=UserRecord,
    responses={400: {"model": BadRequestResponse}, 404: {"model": ErrorResponse}},
)
def update_user(
    request: Request,
    username: str,
    caller: Identity = Depends(require(_OWNER_OR_ADMIN)),
    body: dict[str, Any] = Depends(_json_object),
) -> JSONResponse:
    """Update name, and role when the caller is an admin. Other keys are ignored."""
    if "role" in body and caller.role is not Role.admin:
        raise HTTPException(
            status_code=403,
            detail={"status": 403, "error": "Only an admin can change a user's role."},
        )
    return _respond(_directory(request).update_user(username, body))


@router.delete("/users/{username}", response_model=StatusMessage, responses={404: {"model": ErrorResponse}})
def delete_user(
    request: Request,
    username: str,
    caller: Identity = Depends(require(_ADMIN)),
) -> JSONResponse:
    return _respond(_directory(request).delete_user(username))
