"""
Storage Package
===============

Two interchangeable RoscaStore backends, picked by configuration:

    ROSCA_STORAGE = 'sql'   -> SqlAlchemyStore (Flask-SQLAlchemy)
    ROSCA_STORAGE = 'json'  -> JsonFileStore (ROSCA_JSON_PATH)

The app factory builds exactly one store and keeps it in
app.extensions['rosca_store']; services receive it as an argument.
"""

from flask import current_app

from app.storage.base import RoscaStore, StorageError, NotFoundError
from app.storage.json_store import JsonFileStore
from app.storage.sql_store import SqlAlchemyStore

BACKENDS = ('sql', 'json')


def build_store(config):
    """Create the store named by config['ROSCA_STORAGE']."""
    backend = config.get('ROSCA_STORAGE', 'sql')

    if backend == 'sql':
        return SqlAlchemyStore()
    if backend == 'json':
        return JsonFileStore(config['ROSCA_JSON_PATH'])

    raise StorageError(
        f"Unknown storage backend '{backend}' (expected one of: {', '.join(BACKENDS)})"
    )


def get_store() -> RoscaStore:
    """Store of the running app."""
    return current_app.extensions['rosca_store']
