from datetime import datetime, timedelta
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from repurposer.config import get_settings
from repurposer.database import get_db
from repurposer.models.account import Account
from repurposer.models.user import User
from repurposer.schemas.user import TokenPayload

settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, email: str) -> str:
    """Mint a bearer token locally (development and tests); production tokens come from the identity service."""
    expire = datetime.utcnow() + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    payload = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> TokenPayload | None:
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=payload["exp"],
        )
    except (JWTError, KeyError):
        return None


def bearer_token(authorization: str | None) -> str | None:
    """Token from an `Authorization: Bearer <token>` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


def get_user_from_token(token: str, db: Session) -> User | None:
    payload = decode_token(token)
    if not payload:
        return None
    return db.query(User).filter(User.id == payload.sub).first()


def get_account_from_token(token: str, db: Session) -> Account | None:
    """Account of the token's user. None if the token is invalid or the user has no account."""
    user = get_user_from_token(token, db)
    if not user:
        return None
    return db.query(Account).filter(Account.user_id == user.id).first()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = get_user_from_token(credentials.credentials, db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_account(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Account:
    """Logged-in user must have an account (quota/billing subject)."""
    account = db.query(Account).filter(Account.user_id == user.id).first()
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
        )
    return account
