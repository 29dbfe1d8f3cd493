"""
Bootstrap of the fixed test accounts.

Four accounts with identifiers ``1`` to ``4`` are created on first start.
Their tokens are issued with the 100-year lifetime reserved for test
identifiers, so clients can hard-code them in fixtures.
"""
import logging

from sqlalchemy.orm import Session

from .auth import TEST_IDENTIFIERS, TokenClaim, TokenIssuer, hash_secret
from .models import User

logger = logging.getLogger(__name__)

TEST_ACCOUNT_PASSWORD = "123456789"


def seed_account_email(user_id: str) -> str:
    return f"test{user_id}@gmail.com"


def seed_test_accounts(db: Session, issuer: TokenIssuer) -> int:
    """
    Ensure every test account exists.

    Accounts are created one after another and committed individually, so a
    partially seeded store is completed on the next run. Accounts that
    already exist (by id or by email) are left untouched.

    Args:
        db: Database session
        issuer: Token issuer used for the accounts' initial refresh tokens

    Returns:
        int: Number of accounts created
    """
    created = 0
    for user_id in sorted(TEST_IDENTIFIERS):
        email = seed_account_email(user_id)
        if db.get(User, user_id) is not None:
            continue
        if db.query(User).filter(User.email == email).first() is not None:
            logger.warning("[Seed] Skipping test account: user_id=%s, email already taken", user_id)
            continue

        user = User(id=user_id, email=email, password=hash_secret(TEST_ACCOUNT_PASSWORD))
        tokens = issuer.issue(TokenClaim(user_id=user_id))
        user.refresh_token = hash_secret(tokens.refresh_token)
        db.add(user)
        db.commit()
        created += 1
        logger.info("[Seed] Created test account: user_id=%s, email=%s", user_id, email)

    return created
