import pytest

from insta.auth.manager import AuthSessionManager
from insta.server.app import build_registry
from insta.server.settings import InstaServerSettings
from insta.tests.mocks import FakeAccountClient
from shared.storage import LocalSessionStorage

TEST_USERNAME = "tester"
TEST_PASSWORD = "correct horse battery staple"  # noqa: S105


@pytest.fixture
def session_storage(tmp_path):
    return LocalSessionStorage(tmp_path / "data" / "session.json")


@pytest.fixture
def fake_client():
    return FakeAccountClient()


@pytest.fixture
def auth_manager(session_storage, fake_client):
    return AuthSessionManager(session_storage, lambda: fake_client)


@pytest.fixture
def settings():
    return InstaServerSettings(_env_file=None, username=None, password=None, auto_login=False)


@pytest.fixture
def registry(auth_manager, settings):
    return build_registry(auth_manager, settings)


@pytest.fixture
async def logged_in(auth_manager):
    await auth_manager.login(TEST_USERNAME, TEST_PASSWORD)
    return auth_manager
