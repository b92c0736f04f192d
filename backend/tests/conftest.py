"""
Root pytest configuration for backend tests.

Provides:
- Shared fixtures (app, client)
- Raw payload fixtures for users and posts
"""

import sys
from pathlib import Path

# Add backend directory to Python path so `import board_api` works
# without an editable install
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest


@pytest.fixture(autouse=True)
def default_contract_env(monkeypatch):
    """Every test starts in STRICT mode with the default API version."""
    monkeypatch.delenv("CONTRACT_MODE", raising=False)
    monkeypatch.delenv("API_VERSION", raising=False)


@pytest.fixture
def app():
    """Create test Flask application."""
    from board_api.app import create_app

    app = create_app()
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


# =============================================================================
# FIXTURES - Simulated wire payloads
# =============================================================================

@pytest.fixture
def user_raw():
    """A complete public user as it arrives over the wire."""
    return {
        "id": "u-100",
        "username": "jo",
        "email": "jo@example.com",
        "avatar": "https://cdn.example.com/avatars/jo.png",
        "level": 3,
        "role": "member",
        "createdAt": "2024-05-01T12:00:00Z",
    }


@pytest.fixture
def user_auth_raw(user_raw):
    """User plus credential reference (from the identity collaborator)."""
    return {**user_raw, "passwordHash": "argon2id$v=19$m=65536,t=3,p=4$c2FsdA$aGFzaA"}


@pytest.fixture
def author_raw():
    return {"id": "u-100", "username": "jo", "level": 3}


@pytest.fixture
def sublet_raw(author_raw):
    """A sublet post with every required field."""
    return {
        "id": "p-1",
        "type": "sublet",
        "author": author_raw,
        "title": "Furnished room near campus",
        "category": "room",
        "status": "active",
        "createdAt": "2024-05-01T12:00:00Z",
        "rent": 850,
        "address": "12 Elm St",
        "availableFrom": "2024-06-01T00:00:00Z",
        "amenities": ["wifi", "laundry"],
        "utilities": ["water", "internet"],
    }


@pytest.fixture
def housing_request_raw(author_raw):
    """A housing request post with every required field."""
    return {
        "id": "p-2",
        "type": "housing_request",
        "author": author_raw,
        "title": "Looking for a studio",
        "category": "studio",
        "status": "active",
        "createdAt": "2024-05-02T09:30:00Z",
        "budgetMax": 1200,
        "moveInDate": "2024-08-15T00:00:00Z",
        "preferredLocations": ["Downtown", "Riverside"],
    }
