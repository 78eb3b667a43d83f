"""Authorization callback handling.

The authorization-code exchange is done by a remote service which redirects
back with the resulting tokens as query parameters. This module turns those
parameters into a Credential and builds the URL that starts the flow.
"""

import math
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit

from ..exceptions import CredentialError
from .models import Credential

GOOGLE_AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
MAIL_SCOPE = "https://mail.google.com/"

REQUIRED_CALLBACK_PARAMS = ("access_token", "refresh_token", "email", "expires_in")


def parse_callback_url(url: str) -> dict[str, str]:
    """Extract the query parameters of a callback redirect URL."""
    return dict(parse_qsl(urlsplit(url).query))


def credential_from_callback(params: Mapping[str, str], now_ms: int) -> Credential:
    """Build a credential from callback parameters.

    Args:
        params: Callback query parameters
        now_ms: Receipt time in epoch milliseconds; expires_in is relative to it

    Returns:
        Credential expiring at now_ms + expires_in * 1000

    Raises:
        CredentialError: If a required parameter is missing or expires_in is not
            a positive number of seconds
    """
    missing = [name for name in REQUIRED_CALLBACK_PARAMS if not params.get(name)]
    if missing:
        raise CredentialError("Missing authentication parameters", missing=missing)

    try:
        expires_in = float(params["expires_in"])
    except ValueError:
        raise CredentialError(f"Invalid expires_in: {params['expires_in']!r}") from None
    if not math.isfinite(expires_in) or expires_in <= 0:
        raise CredentialError(f"Invalid expires_in: {params['expires_in']!r}")

    return Credential(
        access_token=params["access_token"],
        refresh_token=params["refresh_token"],
        email=params["email"],
        name=params.get("name") or None,
        picture=params.get("picture") or None,
        expires_at=now_ms + int(expires_in * 1000),
        created_at=now_ms,
    )


def build_authorization_url(client_id: str, redirect_uri: str) -> str:
    """Build the authorization entry point URL.

    Requests offline access with a forced consent prompt so the redirect
    always carries a refresh token.
    """
    query = urlencode({
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": MAIL_SCOPE,
        "access_type": "offline",
        "prompt": "consent",
    })
    return f"{GOOGLE_AUTH_ENDPOINT}?{query}"
