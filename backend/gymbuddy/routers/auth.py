"""Authentication router and bearer-token dependency."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.schemas import ApiResponse, TokenResponse, UserLogin, UserProfile, UserRegister
from gymbuddy.services.auth_service import AuthService
from gymbuddy.services.profile_service import to_user_profile

router = APIRouter(prefix="/auth", tags=["auth"])

bearer_scheme = HTTPBearer(auto_error=False)


# ============== Dependencies ==============

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the `Authorization: Bearer` header."""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    
    user = AuthService(db).user_from_token(credentials.credentials)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


# ============== Auth Endpoints ==============

@router.post("/register", response_model=ApiResponse[TokenResponse], status_code=201)
def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
):
    """Register a new user."""
    auth_service = AuthService(db)
    
    if auth_service.get_user_by_email(user_data.email):
        raise HTTPException(status_code=400, detail="Email already in use")
    
    user = auth_service.create_user(
        email=user_data.email,
        password=user_data.password,
        name=user_data.name,
    )
    
    return ApiResponse(
        data=TokenResponse(access_token=auth_service.token_for(user), user_id=user.id, name=user.name)
    )


@router.post("/login", response_model=ApiResponse[TokenResponse])
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
):
    """Login with email and password."""
    auth_service = AuthService(db)
    
    user = auth_service.authenticate_user(credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    
    return ApiResponse(
        data=TokenResponse(access_token=auth_service.token_for(user), user_id=user.id, name=user.name)
    )


@router.get("/me", response_model=ApiResponse[UserProfile])
def get_me(
    current_user: User = Depends(get_current_user),
):
    """Get current authenticated user's profile."""
    return ApiResponse(data=to_user_profile(current_user))
