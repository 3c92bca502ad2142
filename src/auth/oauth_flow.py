"""
Google OAuth2 web-server flow for per-user calendar access
"""
import logging
import os
from typing import List, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from config.settings import Config
from src.auth.credential_store import UserCredential
from src.scheduler.errors import AuthExchangeError, ConfigError

logger = logging.getLogger(__name__)

# Google may grant a subset or superset of the requested scopes
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")


class AuthorizationFlow:
    """Builds consent URLs, exchanges codes and binds credentials to a client"""

    def __init__(self, config: Config = None):
        self.config = config or Config()

    def _client_config(self) -> dict:
        if not self.config.is_oauth_configured():
            raise ConfigError("Google OAuth client credentials are not configured")
        return {
            "web": {
                "client_id": self.config.GOOGLE_CLIENT_ID,
                "client_secret": self.config.GOOGLE_CLIENT_SECRET,
                "auth_uri": self.config.GOOGLE_AUTH_URI,
                "token_uri": self.config.GOOGLE_TOKEN_URI,
                "redirect_uris": [self.config.GOOGLE_REDIRECT_URI],
            }
        }

    def _build_flow(self, scopes: Optional[List[str]] = None) -> Flow:
        # No PKCE: the consent URL and the later exchange run on different Flow instances
        return Flow.from_client_config(
            self._client_config(),
            scopes=scopes or self.config.SCOPES,
            redirect_uri=self.config.GOOGLE_REDIRECT_URI,
            autogenerate_code_verifier=False,
        )

    def build_consent_url(self, user_id: str, scopes: Optional[List[str]] = None) -> str:
        """Consent URL requesting offline access, carrying user_id as the OAuth state"""
        flow = self._build_flow(scopes)
        auth_url, _ = flow.authorization_url(
            access_type="offline",
            prompt="consent",
            state=user_id,
        )
        return auth_url

    def exchange_code(self, code: str, user_id: str) -> UserCredential:
        """Trade a one-time authorization code for a stored-ready credential"""
        if not code:
            raise AuthExchangeError("Missing authorization code")

        flow = self._build_flow()
        try:
            flow.fetch_token(code=code, timeout=self.config.OAUTH_TIMEOUT)
        except Exception as e:
            logger.error(f"❌ Token exchange failed for user {user_id}: {e}")
            raise AuthExchangeError(f"Token exchange failed: {e}") from e

        creds = flow.credentials
        if not creds.token:
            raise AuthExchangeError("Token exchange returned no access token")

        logger.info(f"✅ OAuth2 tokens received for user: {user_id}")
        return UserCredential(
            user_id=user_id,
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expiry=creds.expiry,
            scopes=list(creds.scopes or self.config.SCOPES),
            token_uri=creds.token_uri or self.config.GOOGLE_TOKEN_URI,
        )

    def authorized_client(self, credential: UserCredential) -> Credentials:
        """Google credentials for exactly one subsequent calendar call.

        Refreshing happens inside the client library; the caller writes any
        rotated token back to the store.
        """
        if not self.config.is_oauth_configured():
            raise ConfigError("Google OAuth client credentials are not configured")
        return Credentials(
            token=credential.access_token,
            refresh_token=credential.refresh_token,
            token_uri=credential.token_uri,
            client_id=self.config.GOOGLE_CLIENT_ID,
            client_secret=self.config.GOOGLE_CLIENT_SECRET,
            scopes=credential.scopes or self.config.SCOPES,
            expiry=credential.expiry,
        )
