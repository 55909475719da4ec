"""
Repository layer for data access operations.

Repositories derive their SQL from entity metadata and enforce optimistic
locking on every update and version-guarded delete.
"""

from blogdata.repos.crud import CrudRepository
from blogdata.repos.derived import DerivedQuery
from blogdata.repos.post_repo import PostRepository

__all__ = ["CrudRepository", "DerivedQuery", "PostRepository"]
