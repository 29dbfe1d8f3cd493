"""
Auth Router - login (create-or-authenticate) and refresh-token rotation.
"""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import TokenClaim, TokenIssuer, TokenPair, hash_secret, verify_secret
from ..config import Settings
from ..db import get_db
from ..exceptions import CredentialError, NotFoundError, TokenInvalidError, ValidationError
from ..models import User
from ..schemas import ErrorResponse, LoginRequest, TokenPairOut, TokenPairResponse

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

SUPERSEDED = "Token is invalid or expired: refresh token has been superseded"


def get_issuer(request: Request) -> TokenIssuer:
    return request.app.state.issuer


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token segment from an ``Authorization: Bearer <token>`` header value.

    Only a missing token segment is rejected here; whatever follows the scheme,
    Bearer or not, is left to signature verification.
    """
    if not authorization:
        return None
    _scheme, _, token = authorization.strip().partition(" ")
    return token.strip() or None


def rotate_refresh_token(user: User, issuer: TokenIssuer, db: Session) -> TokenPair:
    """
    Issue a new pair for the user and overwrite the stored refresh-token hash.

    The overwrite is the only way earlier refresh tokens stop being current.
    """
    tokens = issuer.issue(TokenClaim(user_id=user.id))
    user.refresh_token = hash_secret(tokens.refresh_token)
    db.add(user)
    db.commit()
    return tokens


def swap_refresh_token(user: User, expected_hash: str, issuer: TokenIssuer, db: Session) -> TokenPair:
    """
    Rotate only if the stored hash is still ``expected_hash``.

    The check and the overwrite are one UPDATE, so of several requests
    presenting the same refresh token exactly one wins.

    Raises:
        TokenInvalidError: If another request rotated the token first
    """
    tokens = issuer.issue(TokenClaim(user_id=user.id))
    swapped = (
        db.query(User)
        .filter(User.id == user.id, User.refresh_token == expected_hash)
        .update({User.refresh_token: hash_secret(tokens.refresh_token)}, synchronize_session=False)
    )
    db.commit()
    if swapped == 0:
        logger.warning("[Refresh] Lost rotation race: user_id=%s", user.id)
        raise TokenInvalidError(SUPERSEDED)
    return tokens


def token_response(tokens: TokenPair) -> TokenPairResponse:
    return TokenPairResponse(
        data=TokenPairOut(access_token=tokens.access_token, refresh_token=tokens.refresh_token)
    )


def _authenticate(user: User, password: str, issuer: TokenIssuer, db: Session) -> TokenPair:
    if not verify_secret(password, user.password):
        logger.info("[Login] Password mismatch: user_id=%s", user.id)
        raise CredentialError("Password is incorrect!")

    tokens = rotate_refresh_token(user, issuer, db)
    logger.info("[Login] Successful login: user_id=%s", user.id)
    return tokens


@router.post(
    "/login",
    response_model=TokenPairResponse,
    responses={400: {"model": ErrorResponse}},
)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_issuer),
):
    if not credentials.email or not credentials.password:
        raise ValidationError("Email and password are required!")

    user = db.query(User).filter(User.email == credentials.email).first()
    if user:
        return token_response(_authenticate(user, credentials.password, issuer, db))

    # First login with this email: provision the account
    user_id = str(uuid.uuid4())
    tokens = issuer.issue(TokenClaim(user_id=user_id))
    new_user = User(
        id=user_id,
        email=credentials.email,
        password=hash_secret(credentials.password),
        refresh_token=hash_secret(tokens.refresh_token),
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request created the same email first; log in against it
        db.rollback()
        user = db.query(User).filter(User.email == credentials.email).first()
        if user is None:
            raise
        return token_response(_authenticate(user, credentials.password, issuer, db))

    logger.info("[Login] New account: user_id=%s", user_id)
    return token_response(tokens)


@router.get(
    "/refresh",
    response_model=TokenPairResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def refresh(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_issuer),
    settings: Settings = Depends(get_app_settings),
):
    token = bearer_token(authorization)
    if token is None:
        raise ValidationError("Token is required!")

    result = issuer.verify_refresh(token)
    if not result.is_valid:
        logger.info("[Refresh] Rejected: status=%s, reason=%s", result.status.value, result.reason)
        raise TokenInvalidError(f"Token is invalid or expired: {result.reason}")

    user = db.get(User, result.claim.user_id)
    if not user:
        logger.info("[Refresh] Unknown user: user_id=%s", result.claim.user_id)
        raise NotFoundError("Refresh token is invalid!")

    if settings.REFRESH_TOKEN_REUSE == "reject":
        if not verify_secret(token, user.refresh_token):
            logger.warning("[Refresh] Superseded token presented: user_id=%s", user.id)
            raise TokenInvalidError(SUPERSEDED)
        tokens = swap_refresh_token(user, user.refresh_token, issuer, db)
    else:
        tokens = rotate_refresh_token(user, issuer, db)
    logger.info("[Refresh] Rotated tokens: user_id=%s", user.id)
    return token_response(tokens)
