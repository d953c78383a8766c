"""
Хранилище: пользователи, сессии, периоды
"""
from .db import Database, Queries, StoreError

__all__ = ["Database", "Queries", "StoreError"]
