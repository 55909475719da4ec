"""
Post services with hand-written SQL.

RawPostService goes straight to a DBAPI cursor; PostService uses the
statement client.
"""

from blogdata.services.post_service import PostService
from blogdata.services.raw_post_service import RawPostService

__all__ = ["PostService", "RawPostService"]
