import os
from datetime import datetime, timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import jwt, JWTError
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_SECRET_KEY")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_teacher_token(teacher_id: int, username: str, minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Signed bearer token for a teacher; ``sub`` carries the id as a string."""
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    claims = {"sub": str(teacher_id), "username": username, "exp": expire}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def read_teacher_id(token: str) -> Optional[int]:
    """Teacher id from a valid token, None for bad signature, expiry or payload."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
