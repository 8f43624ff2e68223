"""One-time code storage.

``InMemoryCodeStore`` is for tests and development.
``SQLAlchemyCodeStore`` (``lawhelp_verification.store.sqlalchemy``, requires
the ``sqlalchemy`` extra) persists codes in the ``verification_codes`` table.
"""

from .memory import InMemoryCodeStore

__all__: list[str] = ["InMemoryCodeStore"]
