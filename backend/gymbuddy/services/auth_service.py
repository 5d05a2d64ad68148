"""Authentication service with JWT and password hashing."""

from datetime import datetime, timedelta
from typing import Optional
from passlib.context import CryptContext
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from gymbuddy.config import get_settings
from gymbuddy.models import User
from gymbuddy.services.profile_service import calculate_verification_score


settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


class AuthService:
    """Service for authentication operations."""
    
    def __init__(self, db: Session):
        self.db = db
    
    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)
    
    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a password."""
        return pwd_context.hash(password)
    
    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        expire = datetime.utcnow() + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.jwt_secret, algorithm=ALGORITHM)
    
    @staticmethod
    def decode_token(token: str) -> Optional[dict]:
        """Decode and validate a JWT token."""
        try:
            payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
            return payload
        except JWTError:
            return None
    
    def token_for(self, user: User) -> str:
        return self.create_access_token(data={"sub": str(user.id)})
    
    def user_from_token(self, token: Optional[str]) -> Optional[User]:
        """Resolve the active user a bearer token belongs to."""
        if not token:
            return None
        payload = self.decode_token(token)
        if not payload or not payload.get("sub"):
            return None
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None
        user = self.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None
        return user
    
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        return self.db.query(User).filter(User.email == email.lower()).first()
    
    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()
    
    def create_user(self, email: str, password: str, name: str) -> User:
        """Create a new user."""
        hashed_password = self.get_password_hash(password)
        user = User(
            email=email.lower(),
            name=name,
            hashed_password=hashed_password,
            likes_remaining=settings.default_likes_per_day,
            goals=[],
            availability=[],
            interest_tags=[],
        )
        user.verification_score = calculate_verification_score(user)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
    
    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password."""
        user = self.get_user_by_email(email)
        if not user:
            return None
        if not user.hashed_password:
            return None
        if not self.verify_password(password, user.hashed_password):
            return None
        return user
