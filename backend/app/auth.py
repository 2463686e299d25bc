"""
Firebase authentication for FastAPI.

Verifies Firebase ID tokens; the token's uid is the owner ID that scopes
every dependency read and write.
"""

import os
from pathlib import Path

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import get_settings
from app.logging_config import get_logger

logger = get_logger(__name__)

security = HTTPBearer()


def _credential_paths() -> list[Path]:
    # __file__ = backend/app/auth.py -> .parent.parent = backend/
    backend_dir = Path(__file__).parent.parent

    paths = []
    configured = get_settings().firebase_credentials
    if configured:
        paths.append(Path(configured))
    paths.extend([
        backend_dir / "serviceAccountKey.json",
        backend_dir / "firebase-service-account.json",
    ])
    paths.extend(backend_dir.glob("*-firebase-adminsdk-*.json"))

    env_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if env_path:
        paths.append(Path(env_path))
    return paths


def init_firebase() -> None:
    """Initialize the Firebase Admin SDK once, on first token verification."""
    try:
        firebase_admin.get_app()
        return
    except ValueError:
        pass

    for key_path in _credential_paths():
        if key_path.is_file():
            firebase_admin.initialize_app(credentials.Certificate(str(key_path)))
            logger.info(f"Firebase Admin SDK initialized with: {key_path.name}")
            return

    logger.warning("No Firebase service account key found, falling back to default credentials")
    firebase_admin.initialize_app()


class AuthenticatedUser:
    """Represents an authenticated user from Firebase."""

    def __init__(self, uid: str, email: str | None = None, name: str | None = None):
        self.uid = uid
        self.email = email
        self.name = name

    def __repr__(self):
        return f"AuthenticatedUser(uid={self.uid}, email={self.email})"


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
    """
    Verify Firebase ID token and return authenticated user.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    init_firebase()

    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        logger.warning("Expired Firebase token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (auth.InvalidIdTokenError, ValueError) as e:
        logger.warning(f"Invalid Firebase token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        name=decoded_token.get("name"),
    )
    logger.debug(f"Authenticated user: {user.uid}")
    return user
