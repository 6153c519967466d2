"""
Request Dependencies.

Provides the database session, object storage, background job queue and the
authenticated user to API endpoints. Tests override ``get_storage`` and
``get_job_queue`` through ``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database import get_session
from mortiscope.core.database.entities.users import User
from mortiscope.core.errors import UnauthorizedError
from mortiscope.core.storage import S3Storage
from mortiscope.core.user_agent import GeoLookup, no_geo_lookup
from mortiscope.server.core.config import settings

from .auth import AuthService
from .jobs import BackgroundJobQueue, JobQueue

_bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_storage() -> S3Storage:
    """Storage bound to the configured bucket. Fails when the bucket is not configured."""
    aws = settings.aws.require()
    return S3Storage(
        bucket_name=aws.bucket_name,
        region=aws.bucket_region,
        access_key_id=aws.access_key_id,
        secret_access_key=aws.secret_access_key,
        endpoint_url=aws.endpoint_url,
    )


def get_job_queue(background_tasks: BackgroundTasks) -> JobQueue:
    return BackgroundJobQueue(background_tasks)


def get_geo_lookup() -> GeoLookup:
    return no_geo_lookup


@dataclass(frozen=True)
class ClientInfo:
    user_agent: str
    ip_address: str


def get_client_info(request: Request) -> ClientInfo:
    """User agent and address of the caller: the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.headers.get("x-real-ip", "").strip() or (request.client.host if request.client else "")
    return ClientInfo(user_agent=request.headers.get("user-agent", ""), ip_address=ip)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials or None


class RequireUser:
    """
    Dependency resolving the signed-in user from the bearer token.

    Endpoints differ in how they word a missing sign-in, so the message is
    configurable per use.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        self.message = message

    async def __call__(
        self,
        session: AsyncSession = Depends(get_session),
        token: Optional[str] = Depends(get_bearer_token),
    ) -> User:
        if not token:
            raise UnauthorizedError(self.message)
        user = await AuthService(session).resolve_user(token)
        if user is None:
            raise UnauthorizedError(self.message)
        return user


SessionDep = Annotated[AsyncSession, Depends(get_session)]
StorageDep = Annotated[S3Storage, Depends(get_storage)]
JobQueueDep = Annotated[JobQueue, Depends(get_job_queue)]
GeoLookupDep = Annotated[GeoLookup, Depends(get_geo_lookup)]
TokenDep = Annotated[Optional[str], Depends(get_bearer_token)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]
CurrentUser = Annotated[User, Depends(RequireUser())]
