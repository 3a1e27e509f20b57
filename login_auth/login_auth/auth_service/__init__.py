"""
auth_service package

Credential verification and bearer token lifecycle for the login service.
It includes:

- Password hashing and credential checks (`auth.py`)
- Token signing and verification (`tokens.py`)
- Configuration (`config.py`) and error types (`errors.py`)
- SQLAlchemy user model, database setup and user store (`models.py`, `db.py`, `store.py`)
- FastAPI application (`main.py`)
"""
