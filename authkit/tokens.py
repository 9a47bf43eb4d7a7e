"""Signed, time-bounded session tokens.

Tokens are JWTs carrying the account id (``sub``), username, role snapshot,
a unique token id (``jti``) and whole-second ``iat``/``exp`` claims.

Verification order matters: the signature and claim structure are checked
first, and only an authentic token is classified as expired. A forged token
is always rejected as invalid, whatever its ``exp`` says.
"""

from datetime import timedelta
from uuid import UUID, uuid4

import jwt

from authkit.config import AuthConfig
from authkit.exceptions import TokenExpiredError, TokenInvalidError
from authkit.timezone import from_timestamp, now_utc
from authkit.types import SessionPayload

REQUIRED_CLAIMS = ["jti", "sub", "username", "role", "iat", "exp"]


class TokenCodec:
    """Issue and verify session tokens.

    Stateless and free of I/O, so a single instance can be shared by
    every request thread.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("secret is required")
        self._secret = secret
        self._algorithm = algorithm

    @classmethod
    def from_config(cls, config: AuthConfig) -> "TokenCodec":
        return cls(config.token_secret, config.token_algorithm)

    def issue(
        self,
        account_id: UUID,
        username: str,
        role: str,
        ttl: timedelta,
    ) -> tuple[str, SessionPayload]:
        """Create a signed token.

        Returns:
            Tuple of (serialized token, payload it carries)

        Raises:
            ValueError: If ttl is not positive.
        """
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")

        # JWT time claims are whole seconds: iat rounds down, exp rounds up,
        # so a token never lives shorter than ttl
        now = now_utc()
        expires_at = (now + ttl).replace(microsecond=0)
        if expires_at < now + ttl:
            expires_at += timedelta(seconds=1)
        payload = SessionPayload(
            token_id=uuid4(),
            account_id=account_id,
            username=username,
            role=role,
            issued_at=now.replace(microsecond=0),
            expires_at=expires_at,
        )

        claims = {
            "jti": str(payload.token_id),
            "sub": str(payload.account_id),
            "username": payload.username,
            "role": payload.role,
            "iat": int(payload.issued_at.timestamp()),
            "exp": int(payload.expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=self._algorithm)
        return token, payload

    def verify(self, token: str) -> SessionPayload:
        """Verify a token and return its payload.

        Raises:
            TokenInvalidError: Signature, encoding or claims are wrong.
            TokenExpiredError: Token is authentic but past expires_at.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError("Token is invalid") from e

        try:
            payload = SessionPayload(
                token_id=UUID(claims["jti"]),
                account_id=UUID(claims["sub"]),
                username=claims["username"],
                role=claims["role"],
                issued_at=from_timestamp(claims["iat"]),
                expires_at=from_timestamp(claims["exp"]),
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenInvalidError("Token claims are malformed") from e

        if now_utc() > payload.expires_at:
            raise TokenExpiredError("Token has expired")

        return payload
