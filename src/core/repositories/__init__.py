from src.core.repositories.identity_store import IdentityStore, SqlAlchemyIdentityStore

__all__ = [
    "IdentityStore",
    "SqlAlchemyIdentityStore",
]
