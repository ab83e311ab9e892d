"""
Registration and login endpoints.

Neither route requires a token.  Login failures use a single generic
message so clients cannot tell an unknown username from a wrong
password.
"""

from fastapi import APIRouter, status

from event_planner_api.app.core.security import create_access_token
from event_planner_api.app.schemas.user import RegisterResponse, TokenResponse, UserCredentials
from event_planner_api.app.services.user_service import UserService

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(credentials: UserCredentials) -> RegisterResponse:
    """Register a new user."""
    await UserService.create_user(credentials.username, credentials.password)
    return RegisterResponse()


@router.post("/login", response_model=TokenResponse)
async def login_user(credentials: UserCredentials) -> TokenResponse:
    """Check the credentials and return a session token valid for one day."""
    user = await UserService.authenticate(credentials.username, credentials.password)
    return TokenResponse(token=create_access_token(user.id))
