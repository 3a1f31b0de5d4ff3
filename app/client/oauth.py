"""
OAuth redirect handling for the alternate sign-in path
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse


@dataclass
class SessionTokens:
    """Either an access/refresh token pair or an authorization code to exchange"""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    code: Optional[str] = None

    @property
    def has_session(self) -> bool:
        return bool(self.access_token and self.refresh_token)


def _first(params, name: str) -> Optional[str]:
    values = params.get(name)
    return values[0] if values else None


def extract_session_tokens(redirect_url: str) -> Optional[SessionTokens]:
    """
    Pull tokens out of the provider's redirect URL.

    Tokens in the hash fragment win; otherwise a ``code`` query parameter is
    returned for exchange. None when the URL carries neither.
    """
    if not redirect_url:
        return None

    parsed = urlparse(redirect_url)
    fragment = parse_qs(parsed.fragment)
    access_token = _first(fragment, "access_token")
    refresh_token = _first(fragment, "refresh_token")
    if access_token and refresh_token:
        return SessionTokens(access_token=access_token, refresh_token=refresh_token)

    code = _first(parse_qs(parsed.query), "code")
    if code:
        return SessionTokens(code=code)
    return None
