"""Persistence backends for users and verification codes."""

from .abstract_store import UserStore, VerificationStore
from .sql_store import SQLUserStore, SQLVerificationStore

__all__ = ["UserStore", "VerificationStore", "SQLUserStore", "SQLVerificationStore"]
