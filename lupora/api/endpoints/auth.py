from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from lupora.database import get_db
from lupora.schemas.user import UserRegister, UserLogin, UserResponse, AuthResponse, ProfileUpdate, ChangePassword
from lupora.schemas.common import MessageResponse
from lupora.services import auth_service
from lupora.api.deps import CurrentUser, get_current_user

router = APIRouter()


def _auth_response(user, message: str) -> AuthResponse:
    tokens = auth_service.create_tokens(user)
    return AuthResponse(
        token=tokens["token"],
        user=UserResponse.model_validate(user),
        message=message,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new user"""
    user = auth_service.register_user(db, user_data)
    return _auth_response(user, "Registration successful")


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with email and password"""
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)
    return _auth_response(user, "Login successful")


@router.get("/me", response_model=UserResponse)
def me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Current user profile"""
    return auth_service.get_user(db, current_user.id)


@router.put("/profile", response_model=AuthResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename the user; the new token carries the new name"""
    user = auth_service.update_profile(db, current_user.id, profile_data.name)
    return _auth_response(user, "Profile updated")


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    password_data: ChangePassword,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change password after checking the current one"""
    auth_service.change_password(db, current_user.id, password_data.current_password, password_data.new_password)
    return MessageResponse(message="Password changed successfully")
