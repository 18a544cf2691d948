import pathlib
import site

import pytest
from sqlstore.connection import dispose_all_engines

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def dispose_engines():
    """Dispose pooled engines after each test to ensure test isolation."""
    yield
    dispose_all_engines()


pytest_plugins = [
    'tests.fixtures.values',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
