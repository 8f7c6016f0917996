import pytest
from fastapi.testclient import TestClient

from storefront.api.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user=None, **extra):
        headers = {}
        if user is not None:
            headers["x-auth-request-email"] = user.email
        headers.update({k.replace("_", "-"): v for k, v in extra.items()})
        return headers
    return _headers
