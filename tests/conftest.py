from datetime import date

import pytest

from chronopick import create_app
from chronopick.config import TestingConfig


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def today():
    return date(2024, 3, 10)
