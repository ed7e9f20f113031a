"""
Pytest configuration and shared fixtures.

This module provides common fixtures for testing:
- Session tokens
- Database and user repository
- A stub verification gateway
- Real services wired together and an API client
"""

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional, Set, Tuple
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before imports
os.environ["SESSION_SECRET"] = "test_session_secret_for_testing_only_32bytes!"
os.environ["SESSION_BASE_URL"] = "http://localhost:3000"
os.environ["ADMIN_SETUP_PASSWORD"] = "Admin-Setup-Secret-1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VERIFY_BACKEND"] = "static"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("RATE_LIMIT_REDIS_URL", None)

from slotbook.auth import SessionIssuer, UserRepository
from slotbook.config import Config, load_config
from slotbook.db import Event, create_db_engine, create_session_factory, init_db
from slotbook.errors import GatewayError
from slotbook.services import (
    ServiceContainer,
    CredentialAuthorizer,
    RoleSetupResolver,
    PreferencesService,
    create_services,
    SendResult,
    CheckResult,
)


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(scope="session")
def test_config():
    """Test configuration values."""
    return {
        "session_secret": "test_session_secret_for_testing_only_32bytes!",
        "admin_password": "Admin-Setup-Secret-1",
        "valid_code": "123456",
        "test_phone": "+14148616375",
        "raw_phone": "(414) 861-6375",
    }


@pytest.fixture
def config() -> Config:
    return load_config()


# =============================================================================
# Stub verification gateway
# =============================================================================

class StubGateway:
    """
    Verification gateway double that approves a single code.

    An approved (phone, code) pair is consumed: checking it again returns
    not approved until a new code is sent. Every call is recorded.
    """

    def __init__(self, valid_code: str = "123456"):
        self.valid_code = valid_code
        self.sent: List[str] = []
        self.checked: List[Tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None
        self._consumed: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()

    def send_code(self, phone: str) -> SendResult:
        if self.fail_with:
            raise self.fail_with
        with self._lock:
            self.sent.append(phone)
            self._consumed.discard((phone, self.valid_code))
        return SendResult(attempt_id=f"VE{len(self.sent):04d}", status="pending")

    def check_code(self, phone: str, code: str) -> CheckResult:
        if self.fail_with:
            raise self.fail_with
        with self._lock:
            self.checked.append((phone, code))
            if code != self.valid_code:
                return CheckResult(approved=False, status="pending")
            if (phone, code) in self._consumed:
                return CheckResult(approved=False, status="not_found")
            self._consumed.add((phone, code))
        return CheckResult(approved=True, status="approved")


@pytest.fixture
def gateway(test_config) -> StubGateway:
    return StubGateway(valid_code=test_config["valid_code"])


@pytest.fixture
def failing_gateway() -> StubGateway:
    stub = StubGateway()
    stub.fail_with = GatewayError("Failed to send verification code")
    return stub


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def user_repo(session_factory) -> UserRepository:
    return UserRepository(session_factory)


@pytest.fixture
def make_event(session_factory):
    """Factory that inserts an Event row."""
    def _make(
        name: str,
        password: Optional[str],
        is_active: bool = True,
        deleted_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None
    ) -> Event:
        with session_factory() as db:
            event = Event(
                name=name,
                professional_password=password,
                is_active=is_active,
                deleted_at=deleted_at,
            )
            if created_at:
                event.created_at = created_at
            db.add(event)
            db.commit()
            return event
    return _make


@pytest.fixture
def sample_user(user_repo, test_config):
    """A user created by a first login."""
    user, _ = user_repo.get_or_create_by_phone(test_config["test_phone"])
    return user


# =============================================================================
# Session Fixtures
# =============================================================================

@pytest.fixture
def session_issuer(test_config) -> SessionIssuer:
    return SessionIssuer(secret_key=test_config["session_secret"])


@pytest.fixture
def user_token(session_issuer, sample_user) -> str:
    """Session for sample_user."""
    return session_issuer.issue(sample_user)


@pytest.fixture
def expired_token(session_issuer, sample_user) -> str:
    return session_issuer.issue(sample_user, expires_in=-1)


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def authorizer(gateway, user_repo, session_issuer) -> CredentialAuthorizer:
    return CredentialAuthorizer(gateway, user_repo, session_issuer)


@pytest.fixture
def setup_resolver(user_repo, test_config) -> RoleSetupResolver:
    return RoleSetupResolver(user_repo, admin_password=test_config["admin_password"])


@pytest.fixture
def preferences(user_repo) -> PreferencesService:
    return PreferencesService(user_repo)


@pytest.fixture
def services(config, gateway, engine) -> ServiceContainer:
    """Real services on the in-memory database with the stub gateway."""
    return create_services(config=config, gateway=gateway, engine=engine)


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_app():
    """Create FastAPI app for testing."""
    from api.main import app
    return app


@pytest.fixture
def api_client(api_app, services) -> Generator[TestClient, None, None]:
    """Test client whose dependencies resolve to the test services."""
    with patch("api.deps.get_services", return_value=services):
        yield TestClient(api_app)


@pytest.fixture
def authenticated_client(api_client, user_token) -> TestClient:
    """Create authenticated test client."""
    api_client.headers["Authorization"] = f"Bearer {user_token}"
    return api_client


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as API endpoint test"
    )
