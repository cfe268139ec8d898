# utils/clerk_auth.py
import httpx
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from config import settings

logger = logging.getLogger(__name__)

# Session tokens are optional on routes that report sign-in errors in their result
bearer_scheme = HTTPBearer(auto_error=False)


class IdentityProviderError(Exception):
    """Raised when the Clerk Backend API cannot be reached."""


@dataclass
class ClerkUser:
    id: str
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email


def verify_session_token(token: str) -> Optional[str]:
    """Verify a Clerk session token and return the user id it was issued for."""
    try:
        payload = jwt.decode(
            token,
            settings.CLERK_JWT_KEY,
            algorithms=["RS256"],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.info("Rejected Clerk session token: %s", e)
        return None

    parties = settings.authorized_parties
    if parties and payload.get("azp") not in parties:
        logger.info("Rejected Clerk session token from unauthorized party %s", payload.get("azp"))
        return None
    return payload.get("sub")


# Resolve the signed-in Clerk user id, or None for anonymous callers
def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is None:
        return None
    return verify_session_token(credentials.credentials)


def require_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


class ClerkClient:
    def __init__(self, api_url=None, secret_key=None, transport=None):
        self.api_url = api_url or settings.CLERK_API_URL
        self.secret_key = secret_key or settings.CLERK_SECRET_KEY
        self._transport = transport

    async def get_user(self, user_id: str) -> Optional[ClerkUser]:
        # Fetch the user's profile; unknown users yield None
        url = urljoin(self.api_url, f"/v1/users/{user_id}")
        headers = {"Authorization": f"Bearer {self.secret_key}"}
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(url, headers=headers)
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                data = response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Clerk user lookup error: {e}")
                raise IdentityProviderError(str(e)) from e

        emails = data.get("email_addresses") or []
        return ClerkUser(
            id=data["id"],
            email=(emails[0].get("email_address") if emails else None) or "",
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )


clerk_client = ClerkClient()
