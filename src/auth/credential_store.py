"""
Per-user storage of Google OAuth grants
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class UserCredential:
    """Access/refresh token pair authorizing calendar calls for one user"""
    user_id: str
    access_token: str
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None
    scopes: List[str] = field(default_factory=list)
    token_uri: str = "https://oauth2.googleapis.com/token"

    def with_access_token(self, access_token: str, expiry: Optional[datetime]) -> "UserCredential":
        return replace(self, access_token=access_token, expiry=expiry)


class CredentialStore(ABC):
    """Keyed credential storage injected into the scheduler.

    Implementations decide their own consistency. Swap in a lock-per-key or
    transactional backend here without touching the scheduling code.
    """

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserCredential]:
        ...

    @abstractmethod
    def put(self, user_id: str, credential: UserCredential) -> None:
        ...

    @abstractmethod
    def delete(self, user_id: str) -> None:
        ...

    def has(self, user_id: str) -> bool:
        return self.get(user_id) is not None


class InMemoryCredentialStore(CredentialStore):
    """Process-lifetime dict store.

    Not linearizable: two requests for the same user can interleave a get with
    another request's delete or put, so a credential that was just invalidated
    may still be used once by a request already past its lookup.
    """

    def __init__(self):
        self._credentials: Dict[str, UserCredential] = {}

    def get(self, user_id: str) -> Optional[UserCredential]:
        return self._credentials.get(user_id)

    def put(self, user_id: str, credential: UserCredential) -> None:
        if user_id in self._credentials:
            logger.info(f"Replacing stored credential for user: {user_id}")
        self._credentials[user_id] = credential

    def delete(self, user_id: str) -> None:
        if self._credentials.pop(user_id, None) is not None:
            logger.info(f"Deleted stored credential for user: {user_id}")

    def has(self, user_id: str) -> bool:
        return user_id in self._credentials

    def __len__(self) -> int:
        return len(self._credentials)
