"""
Tests for the login_auth auth_service package.

Unit tests exercise the hashing, credential and token services directly;
API tests drive the FastAPI app through `TestClient` against SQLite.
"""
