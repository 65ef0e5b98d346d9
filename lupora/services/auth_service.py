import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from lupora.models.user import User
from lupora.schemas.user import UserRegister
from lupora.utils.errors import AuthError, ConflictError, NotFoundError
from lupora.utils.security import get_password_hash, verify_password, create_user_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def register_user(db: Session, user_data: UserRegister) -> User:
    """Register a new user"""
    email = user_data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(
        name=user_data.name,
        email=email,
        password_hash=get_password_hash(user_data.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same address
        db.rollback()
        raise ConflictError("Email already registered")
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Authenticate user and return user object"""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthError(INVALID_CREDENTIALS)
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")


def update_profile(db: Session, user_id: str, name: str) -> User:
    """Rename the user. Callers must hand out a fresh token since the name is a claim."""
    user = get_user(db, user_id)
    user.name = name
    db.commit()
    db.refresh(user)
    return user


def create_tokens(user: User) -> dict:
    """Session token for user"""
    return {"token": create_user_token(user)}
