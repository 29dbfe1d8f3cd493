import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from token_platform.token_service.config import Settings
from token_platform.token_service.main import create_app

ACCESS_SECRET = "test-access-secret"  # pragma: allowlist secret
REFRESH_SECRET = "test-refresh-secret"  # pragma: allowlist secret


class WriteCounter:
    """Counts INSERT/UPDATE/DELETE statements sent to the database."""

    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().split(" ", 1)[0].upper() in ("INSERT", "UPDATE", "DELETE"):
            self.statements.append(statement)

    @property
    def count(self):
        return len(self.statements)


@pytest.fixture
def settings_factory(tmp_path):
    def make(**overrides):
        values = {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'tokens.db'}",
            "JWT_ACCESS_SECRET": ACCESS_SECRET,
            "JWT_REFRESH_SECRET": REFRESH_SECRET,
            "JWT_ACCESS_EXPIRESIN": "15m",
            "JWT_REFRESH_EXPIRESIN": "7d",
            "SEED_TEST_ACCOUNTS": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return make


@pytest.fixture
def settings(settings_factory):
    return settings_factory()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session_factory(app, client):
    # depends on client so the lifespan has created the schema
    return app.state.session_factory


@pytest.fixture
def write_counter(app, client):
    counter = WriteCounter()
    event.listen(app.state.engine, "before_cursor_execute", counter)
    yield counter
    event.remove(app.state.engine, "before_cursor_execute", counter)
