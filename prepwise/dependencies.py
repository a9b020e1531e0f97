from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from prepwise.config import AUTH_JWT_SECRET, AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE
from prepwise.database import get_db, SessionLocal
from prepwise.models.user import User
from prepwise.services.feedback import FeedbackService
from prepwise.services.gemini import GeminiFeedbackModel
from prepwise.services.resume import VapiFileClient

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """Verify a token issued by the identity provider and return its claims.

    Raises:
        JWTError: If the token is invalid, expired or has no subject
    """
    payload = jwt.decode(
        token,
        AUTH_JWT_SECRET,
        algorithms=[AUTH_JWT_ALGORITHM],
        audience=AUTH_JWT_AUDIENCE,
    )
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload


def get_or_create_user(db: Session, claims: dict) -> User:
    """Load the user for these claims, creating the record on first sight."""
    user_id = str(claims["sub"])
    user = db.get(User, user_id)
    if user is not None:
        return user

    email = claims.get("email") or ""
    user = User(
        id=user_id,
        name=claims.get("name") or email.split("@")[0] or "Candidate",
        email=email or None,
        profile_url=claims.get("picture"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def resolve_user(token: Optional[str], db: Session) -> User:
    """Token -> User, for callers outside the HTTP dependency system."""
    if not token:
        raise JWTError("Missing token")
    return get_or_create_user(db, decode_access_token(token))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from the bearer JWT."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return resolve_user(credentials.credentials, db)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_feedback_service() -> FeedbackService:
    """Feedback pipeline wired to Gemini, the database and the resume store."""
    return FeedbackService(
        model=GeminiFeedbackModel(),
        session_factory=SessionLocal,
        resume_client=VapiFileClient(),
    )
