# security.py
"""
Authentication dependency.

Identity comes from an external provider as a signed bearer token; this
module only verifies it. A missing or invalid token is always a 401
("sign in"), never folded into a 403 access denial.
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from config import JWT_ALGORITHM, JWT_SECRET


@dataclass(frozen=True)
class Identity:
    """Authenticated caller."""
    user_id: UUID
    email: Optional[str] = None


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, secret: str = JWT_SECRET) -> Identity:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise _unauthenticated("Invalid token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthenticated("Token subject is not a user id")

    email = payload.get("email")
    return Identity(user_id=user_id, email=email.strip().lower() if email else None)


def verify_token(request: Request) -> Identity:
    """FastAPI dependency returning the caller's Identity."""
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise _unauthenticated("Missing token")
    secret = getattr(request.app.state, "jwt_secret", None) or JWT_SECRET
    return decode_token(auth.split(" ", 1)[1], secret)


def create_token(user_id: UUID, email: Optional[str] = None, secret: str = JWT_SECRET) -> str:
    """Issue a token in the format verify_token expects (used by tests and tooling)."""
    claims = {"sub": str(user_id)}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)
