"""
API request and response models for the hospital records REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Two error envelopes exist, both inherited from the existing client contract:
  ErrorResponse       {"status": <code>, "error": <text>}     auth, 404, 409, 5xx
  BadRequestResponse  {"error": 400, "message": <text>}       400s
"""

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Role

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /auth."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class UserSummary(BaseModel):
    """One row of GET /users/ -- name and role only."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: Role


class UserRecord(BaseModel):
    """Response for GET/PUT /users/{username}."""

    model_config = ConfigDict(frozen=True)

    name: str
    username: str
    role: Role


class StatusMessage(BaseModel):
    """Acknowledgement for create and delete."""

    model_config = ConfigDict(frozen=True)

    status: int
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned on 401/403/404/409/5xx responses."""

    model_config = ConfigDict(frozen=True)

    status: int
    error: str


class BadRequestResponse(BaseModel):
    """Error envelope returned on 400 responses."""

    model_config = ConfigDict(frozen=True)

    error: int = 400
    message: str = "Invalid request"


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
