"""
token_service tests

Covers the core backend logic of the token service:

- FastAPI application factory and lifespan (`main.py`)
- SQLAlchemy model and database integration (`models.py`, `db.py`)
- Token issuing, verification and hashing (`auth.py`)
- Login and refresh endpoints (`routes/auth.py`)
- Test account bootstrap (`seed.py`)
"""
