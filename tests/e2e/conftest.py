"""
Pytest configuration for E2E tests against a deployed Reviews API.
"""

import os
import uuid

import pytest
import requests


@pytest.fixture(scope="session")
def api_url():
    """API URL for the backend."""
    url = os.getenv("API_URL")
    if not url:
        pytest.skip("API_URL not provided. Set API_URL to a deployed stage, e.g. https://<id>.execute-api.us-east-2.amazonaws.com/Prod")
    return url.rstrip("/")


@pytest.fixture(scope="session")
def id_token():
    """Cognito ID token for the primary test user."""
    token = os.getenv("TEST_ID_TOKEN")
    if not token:
        pytest.skip("Test token not provided. Set TEST_ID_TOKEN to a Cognito ID token.")
    return token


@pytest.fixture(scope="session")
def user_sub():
    """Cognito sub of the user behind TEST_ID_TOKEN."""
    sub = os.getenv("TEST_USER_SUB")
    if not sub:
        pytest.skip("TEST_USER_SUB not provided.")
    return sub


@pytest.fixture(scope="session")
def api(api_url, id_token):
    """requests.Session preconfigured with the test user's bearer token."""
    session = requests.Session()
    session.headers.update({
        "Authorization": f"Bearer {id_token}",
        "Content-Type": "application/json",
    })

    def post(path, body, authenticated=True):
        if authenticated:
            return session.post(f"{api_url}{path}", json=body, timeout=15)
        return requests.post(f"{api_url}{path}", json=body, timeout=15)

    return post


@pytest.fixture
def book_guid():
    """A fresh book id so tests never collide with real data."""
    return f"e2e-book-{uuid.uuid4()}"
