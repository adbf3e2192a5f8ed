"""Authentication service for user management and JWT tokens."""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import logging

from passlib.context import CryptContext
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import ValidationError
from models.users import User
from schemas.auth import TokenPayload
from database import storage_errors

logger = logging.getLogger(__name__)

# Password hashing with Argon2
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class AuthService:
    """Service class for authentication operations."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", access_token_expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password."""
        return pwd_context.hash(password)

    def create_access_token(self, subject: Union[str, int], expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        to_encode = {
            "sub": str(subject),
            "exp": expire,
            "iat": now,
            "type": "access"
        }

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """Decode and validate a JWT token."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return TokenPayload(**payload)
        except (JWTError, ValueError):
            return None

    def create_user(self, db: Session, username: str, password: str) -> User:
        """Create a new user. Usernames are unique."""
        if self.get_user_by_username(db, username):
            raise ValidationError("Username already exists")

        db_user = User(username=username, hashed_password=self.hash_password(password))
        db.add(db_user)
        try:
            db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            db.rollback()
            raise ValidationError("Username already exists") from e
        db.refresh(db_user)

        logger.info(f"Registered user {db_user.id}")
        return db_user

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        """Get a user by username."""
        with storage_errors(db, "fetch user"):
            return db.query(User).filter(User.username == username).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        with storage_errors(db, "fetch user"):
            return db.query(User).filter(User.id == user_id).first()

    def authenticate_user(self, db: Session, username: str, password: str) -> Optional[User]:
        """Authenticate a user by username and password."""
        user = self.get_user_by_username(db, username)
        if not user:
            return None
        if not self.verify_password(password, user.hashed_password):
            return None
        return user
