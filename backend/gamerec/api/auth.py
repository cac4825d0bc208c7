from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gamerec.core.database import get_db
from gamerec.schemas.auth import AuthResponse, UserCreate, UserLogin, UserResponse, ValidateResponse
from gamerec.services import auth_service

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user and sign them in."""
    if auth_service.get_user_by_login(db, user_data.login):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Login already taken",
        )

    user = auth_service.create_user(db, user_data)
    return {"user": user, "token": auth_service.create_access_token(user)}


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Authenticate with login and password."""
    user = auth_service.authenticate_user(db, credentials.login, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"user": user, "token": auth_service.create_access_token(user)}


@router.get("/validate", response_model=ValidateResponse)
async def validate(current_user=Depends(auth_service.get_current_user)):
    """Check a bearer token and return its user."""
    return {"valid": True, "user": UserResponse.model_validate(current_user)}


@router.post("/logout")
async def logout():
    # Tokens are stateless; the client drops its copy
    return {"message": "Logged out"}
