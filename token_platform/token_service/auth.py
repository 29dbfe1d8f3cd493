from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
import uuid

from passlib.context import CryptContext
import jwt

from .config import Settings

# argon2 is memory-hard; used for passwords and stored refresh tokens alike
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# Seeded test accounts whose tokens never practically expire
TEST_IDENTIFIERS = frozenset({"1", "2", "3", "4"})
TEST_TOKEN_LIFETIME = timedelta(days=36500)  # 365 * 100 days

ACCESS = "access"
REFRESH = "refresh"


def hash_secret(value: str) -> str:
    return pwd_context.hash(value)


def verify_secret(value: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(value, hashed)
    except ValueError:
        # stored value is not a hash this context understands
        return False


@dataclass(frozen=True)
class TokenClaim:
    user_id: str

    def to_payload(self) -> dict:
        return {"UUID": self.user_id}


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of checking a presented token.

    ``claim`` is set only when ``status`` is VALID, ``reason`` only when it
    is not.
    """
    status: TokenStatus
    claim: Optional[TokenClaim] = None
    reason: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


class TokenIssuer:
    """
    Signs and verifies access/refresh token pairs.

    Access and refresh tokens use separate secrets, so one can never be
    presented in place of the other.
    """

    def __init__(self, settings: Settings):
        self._secrets = {
            ACCESS: settings.JWT_ACCESS_SECRET,
            REFRESH: settings.JWT_REFRESH_SECRET,
        }
        self._lifetimes = {
            ACCESS: settings.JWT_ACCESS_EXPIRESIN,
            REFRESH: settings.JWT_REFRESH_EXPIRESIN,
        }
        self._algorithm = settings.JWT_ALGORITHM

    @staticmethod
    def is_test_identifier(user_id: Optional[str]) -> bool:
        return user_id is not None and str(user_id) in TEST_IDENTIFIERS

    def lifetime(self, token_type: str, user_id: Optional[str]) -> timedelta:
        if self.is_test_identifier(user_id):
            return TEST_TOKEN_LIFETIME
        return self._lifetimes[token_type]

    def issue(self, claim: TokenClaim, now: Optional[datetime] = None) -> TokenPair:
        now = now or datetime.now(tz=timezone.utc)
        return TokenPair(
            access_token=self._sign(claim, ACCESS, now),
            refresh_token=self._sign(claim, REFRESH, now),
        )

    def verify_access(self, token: str, now: Optional[datetime] = None) -> VerificationResult:
        """
        Check an access token.

        Public API for resource services that accept this service's access
        tokens; the auth endpoints themselves only verify refresh tokens.
        """
        return self._verify(token, ACCESS, now)

    def verify_refresh(self, token: str, now: Optional[datetime] = None) -> VerificationResult:
        return self._verify(token, REFRESH, now)

    def _sign(self, claim: TokenClaim, token_type: str, now: datetime) -> str:
        payload = {
            **claim.to_payload(),
            "type": token_type,
            # unique per token so two pairs issued in the same second differ
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self.lifetime(token_type, claim.user_id),
        }
        return jwt.encode(payload, self._secrets[token_type], algorithm=self._algorithm)

    def _verify(self, token: str, token_type: str, now: Optional[datetime]) -> VerificationResult:
        options = {"require": ["exp", "iat", "UUID"]}
        if now is not None:
            # expiry is checked against `now` below instead of the wall clock
            options.update(verify_exp=False, verify_iat=False)
        try:
            payload = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self._algorithm],
                options=options,
            )
        except jwt.ExpiredSignatureError as e:
            return VerificationResult(TokenStatus.EXPIRED, reason=str(e))
        except jwt.PyJWTError as e:
            return VerificationResult(TokenStatus.MALFORMED, reason=str(e))

        if now is not None:
            exp = payload["exp"]
            if isinstance(exp, bool) or not isinstance(exp, (int, float)):
                return VerificationResult(TokenStatus.MALFORMED, reason="Expiration Time claim (exp) must be an integer.")
            if exp <= now.timestamp():
                return VerificationResult(TokenStatus.EXPIRED, reason="Signature has expired")

        if payload.get("type", token_type) != token_type:
            return VerificationResult(TokenStatus.MALFORMED, reason=f"Not a {token_type} token")
        user_id = payload["UUID"]
        if not isinstance(user_id, str) or not user_id:
            return VerificationResult(TokenStatus.MALFORMED, reason="Invalid UUID claim")
        return VerificationResult(TokenStatus.VALID, claim=TokenClaim(user_id=user_id))
