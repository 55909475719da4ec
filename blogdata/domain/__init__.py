from blogdata.domain.metadata import EntityMetadata
from blogdata.domain.post import POST_METADATA, Post

__all__ = ["EntityMetadata", "POST_METADATA", "Post"]
