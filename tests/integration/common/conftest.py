"""
Fixtures for database-agnostic integration tests.

This module provides parametrized fixtures that allow tests to run
against multiple database backends (PostgreSQL and SQLite).
"""
import pytest
import sqlstore


def names(entities):
    """Names of listed entities, in result order."""
    return [e.fields.name for e in entities]


@pytest.fixture(params=['postgresql', 'sqlite'], ids=['pg', 'sl'])
def store(request):
    """Parametrized fixture providing a staged store for both databases.

    Tests using this fixture will run twice - once for each database.
    """
    if request.param == 'postgresql':
        return request.getfixturevalue('pg_store')
    return request.getfixturevalue('sl_store')


@pytest.fixture
def make_store(request, store):
    """Build another store on the same database with overridden options.
    """
    created = []

    def factory(**kw):
        options = {'drivername': store.options.drivername}
        if store.dialect == 'postgresql':
            options.update(request.getfixturevalue('pg_options'))
        else:
            options.update(request.getfixturevalue('sl_options'))
        options.update(kw)
        other = sqlstore.connect(options)
        created.append(other)
        return other

    yield factory
    for other in created:
        other.close()


@pytest.fixture
def dialect(store):
    """Get the dialect name from the store."""
    return store.dialect


@pytest.fixture
def param(dialect):
    """Positional placeholder for native SQL on the store's dialect."""
    return '%s' if dialect == 'postgresql' else '?'

