"""
Bearer token verification against the AWS Cognito user pool.

Tokens are RS256 JWTs signed with one of the pool's published keys.  The
JWKS document is fetched lazily and cached for an hour.  A verified token
yields an ``Identity``: the caller's Cognito ``sub`` plus the display
name and email present in the claims.  No local user rows are created;
resources store the identity provider's user id directly.
"""
import json
import logging
import time
from dataclasses import dataclass, field
from urllib.request import urlopen

from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

import jwt
from jwt.algorithms import RSAAlgorithm

logger = logging.getLogger(__name__)

_JWKS_CACHE = {"keys": None, "fetched_at": 0}
_JWKS_TTL = 60 * 60  # 1 hour


class InvalidToken(AuthenticationFailed):
    default_detail = "Invalid authentication token"
    default_code = "invalid_token"


@dataclass
class Identity:
    """The verified caller, as seen by DRF's ``request.user``."""

    id: str
    name: str = ""
    email: str = ""
    claims: dict = field(default_factory=dict, repr=False)

    is_authenticated = True
    is_anonymous = False
    is_staff = False

    @property
    def pk(self):
        return self.id

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id

    def __str__(self):
        return self.display_name


def _issuer():
    region = getattr(settings, "COGNITO_REGION", None) or ""
    pool_id = getattr(settings, "COGNITO_USER_POOL_ID", None) or ""
    if not region or not pool_id:
        return ""
    return f"https://cognito-idp.{region}.amazonaws.com/{pool_id}"


def _jwks_url():
    iss = _issuer()
    if not iss:
        return ""
    return f"{iss}/.well-known/jwks.json"


def _get_jwks():
    now = int(time.time())
    if _JWKS_CACHE["keys"] and (now - _JWKS_CACHE["fetched_at"] < _JWKS_TTL):
        return _JWKS_CACHE["keys"]

    url = _jwks_url()
    if not url:
        raise InvalidToken("Cognito not configured (missing region/pool id)")

    logger.info("Fetching Cognito JWKS from %s", url)
    with urlopen(url, timeout=5) as resp:
        data = json.loads(resp.read().decode("utf-8"))

    _JWKS_CACHE["keys"] = data["keys"]
    _JWKS_CACHE["fetched_at"] = now
    return data["keys"]


def _get_public_key(kid: str):
    keys = _get_jwks()
    jwk = next((k for k in keys if k.get("kid") == kid), None)
    if not jwk:
        raise InvalidToken("Invalid token (kid not found)")
    return RSAAlgorithm.from_jwk(json.dumps(jwk))


def verify_token(token: str) -> Identity:
    """
    Verify a Cognito id or access token and return the caller's identity.

    Raises ``InvalidToken`` for anything that does not check out: bad
    signature, unknown key, wrong issuer or client, expired token.
    """
    if not token:
        raise InvalidToken("No authentication token provided")

    try:
        header = jwt.get_unverified_header(token)
        public_key = _get_public_key(header.get("kid"))

        iss = _issuer()
        if not iss:
            raise InvalidToken("Cognito not configured")

        claims = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            options={"verify_aud": False},
            issuer=iss,
        )
    except InvalidToken:
        raise
    except Exception as e:
        logger.info("Token verification failed: %s", e)
        raise InvalidToken(f"Invalid authentication token: {e}")

    token_use = claims.get("token_use")  # "id" or "access"
    client_id = getattr(settings, "COGNITO_APP_CLIENT_ID", "") or ""

    if token_use == "id":
        if client_id and claims.get("aud") != client_id:
            raise InvalidToken("Invalid token audience")
    elif token_use == "access":
        if client_id and claims.get("client_id") != client_id:
            raise InvalidToken("Invalid token client_id")
    else:
        raise InvalidToken("Invalid token_use")

    user_id = claims.get("sub") or ""
    if not user_id:
        raise InvalidToken("Token missing subject")

    # Access tokens carry "username", id tokens "cognito:username"
    username = claims.get("cognito:username") or claims.get("username") or ""
    return Identity(
        id=user_id,
        name=claims.get("name") or username,
        email=(claims.get("email") or "").lower().strip(),
        claims=claims,
    )


class CognitoJWTAuthentication(BaseAuthentication):
    """
    Accepts: Authorization: Bearer <Cognito JWT>
    Supports both id token and access token.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        auth = get_authorization_header(request).decode("utf-8")
        if not auth or not auth.lower().startswith("bearer "):
            return None

        token = auth.split(" ", 1)[1].strip()
        if not token:
            return None

        identity = verify_token(token)
        request.cognito_claims = identity.claims
        return (identity, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
