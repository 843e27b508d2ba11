# ultrabms/infrastructure/security/jwt_provider.py

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

import jwt

from ultrabms.config.settings import settings
from ultrabms.core.exceptions import InvalidTokenError, TokenExpiredError


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class VerificationFailure(str, Enum):
    EXPIRED = "expired"
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class TokenVerification:
    claims: dict[str, Any] | None = None
    failure: VerificationFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.claims is not None


_REQUIRED_CLAIMS = ["exp", "iat", "sub", "sid", "jti", "typ"]


def _key_id(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:16]


class JwtProvider:
    """Emissão e validação de access/refresh tokens (HS256).

    A chave atual assina; as chaves anteriores (``JWT_PREVIOUS_SECRETS``)
    continuam validando tokens emitidos antes da rotação. O header ``kid``
    indica qual chave foi usada.
    """

    def __init__(
        self,
        *,
        secret: str | None = None,
        previous_secrets: list[str] | None = None,
        hash_key: str | None = None,
    ) -> None:
        self._secret = secret or settings.jwt_secret
        previous = settings.jwt_previous_secrets if previous_secrets is None else previous_secrets

        self._keys: dict[str, str] = {_key_id(s): s for s in previous}
        self._kid = _key_id(self._secret)
        self._keys[self._kid] = self._secret

        self._hash_key = (hash_key or settings.token_hash_key or self._secret).encode("utf-8")
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._algorithm = "HS256"

    @property
    def access_ttl_seconds(self) -> int:
        return settings.jwt_access_minutes * 60

    @property
    def refresh_ttl_seconds(self) -> int:
        return settings.jwt_refresh_minutes * 60

    def issue_token(
        self,
        *,
        subject: str,
        session_id: str,
        token_type: TokenType,
        ttl_seconds: int,
        payload: dict | None = None,
    ) -> str:
        now = datetime.now(tz=timezone.utc)
        exp = now + timedelta(seconds=ttl_seconds)

        claims = dict(payload or {})
        claims.update(
            {
                "iss": self._issuer,
                "aud": self._audience,
                "sub": str(subject),
                "sid": str(session_id),
                "iat": int(now.timestamp()),
                "exp": int(exp.timestamp()),
                "jti": uuid4().hex,
                "typ": token_type.value,
            }
        )
        return jwt.encode(claims, self._secret, algorithm=self._algorithm, headers={"kid": self._kid})

    def issue_access_token(self, *, subject: str, session_id: str, email: str, role: str, ttl_seconds: int = 0) -> str:
        ttl = ttl_seconds if ttl_seconds > 0 else self.access_ttl_seconds
        return self.issue_token(
            subject=subject,
            session_id=session_id,
            token_type=TokenType.ACCESS,
            ttl_seconds=ttl,
            payload={"email": email, "role": role},
        )

    def issue_refresh_token(self, *, subject: str, session_id: str, ttl_seconds: int = 0) -> str:
        # refresh token deve ser minimalista
        ttl = ttl_seconds if ttl_seconds > 0 else self.refresh_ttl_seconds
        return self.issue_token(
            subject=subject,
            session_id=session_id,
            token_type=TokenType.REFRESH,
            ttl_seconds=ttl,
        )

    def verify(self, token: str | None) -> TokenVerification:
        if not token or not isinstance(token, str):
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError:
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        key = self._keys.get(str(header.get("kid")))
        if key is None:
            return TokenVerification(failure=VerificationFailure.SIGNATURE_INVALID)

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(failure=VerificationFailure.EXPIRED)
        except jwt.InvalidSignatureError:
            return TokenVerification(failure=VerificationFailure.SIGNATURE_INVALID)
        except jwt.InvalidTokenError:
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        if claims.get("typ") not in (TokenType.ACCESS.value, TokenType.REFRESH.value):
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        return TokenVerification(claims=claims)

    def decode(self, token: str | None, *, expected_type: TokenType | None = None) -> dict:
        result = self.verify(token)
        if result.failure is VerificationFailure.EXPIRED:
            raise TokenExpiredError()
        if not result.ok:
            raise InvalidTokenError()

        claims = result.claims or {}
        if expected_type is not None and claims.get("typ") != expected_type.value:
            raise InvalidTokenError()
        return claims

    def hash_token(self, token: str) -> str:
        return hmac.new(self._hash_key, token.encode("utf-8"), hashlib.sha256).hexdigest()
