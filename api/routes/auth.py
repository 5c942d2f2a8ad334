"""
api/routes/auth.py -- Login endpoint.

Routes:
  POST /auth  -- username/password login; returns {"token": ...}

Security:
  Rate-limited to 10 requests/minute per client IP by the app's own Limiter,
  so the router is built per app by create_router().
  UserDirectory.authenticate() provides timing equalization -- use it, never
  inline get_by_username() + verify_credential().
  Wrong username and wrong password return the same 401 body.
  Cache-Control: no-store on every login response.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from api.limiter import LOGIN_RATE_LIMIT
from api.models import ErrorResponse, LoginRequest, LoginResponse
from auth.directory import UserDirectory
from auth.tokens import TokenService

logger = logging.getLogger("hospitalrecords.api")


def create_router(limiter: Limiter) -> APIRouter:
    # Auth policy:
    # - POST /auth: public -- the login endpoint must be reachable without a token
    router = APIRouter()

    @router.post("/auth", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
    @limiter.limit(LOGIN_RATE_LIMIT)  # below @router so the wrapper is the registered endpoint
    def login(request: Request, body: LoginRequest) -> JSONResponse:
        """Exchange a username and password for a bearer token."""
        directory: UserDirectory = request.app.state.directory
        tokens: TokenService = request.app.state.tokens

        user = directory.authenticate(body.username, body.password)
        if user is None:
            logger.debug("Login failed for %r", body.username)
            resp = JSONResponse(
                status_code=401,
                content=ErrorResponse(status=401, error="Invalid username or password.").model_dump(),
            )
            resp.headers["Cache-Control"] = "no-store"
            return resp

        token = tokens.issue(user.username, user.role)
        resp = JSONResponse(status_code=200, content=LoginResponse(token=token).model_dump())
        resp.headers["Cache-Control"] = "no-store"
        return resp

    return router
