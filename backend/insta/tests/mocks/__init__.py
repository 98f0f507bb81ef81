from insta.tests.mocks.account_client import FakeAccountClient

__all__ = ["FakeAccountClient"]
