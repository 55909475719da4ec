"""Repository for Post entities."""

from blogdata.domain.post import POST_METADATA, Post
from blogdata.repos.crud import CrudRepository
from blogdata.repos.derived import DerivedQuery, escape_like


class PostRepository(CrudRepository[Post]):
    """CRUD for posts plus lookups by slug and tag."""

    metadata = POST_METADATA
    derived_queries = {
        # Slugs are not unique in storage; a duplicate surfaces as CardinalityError.
        "find_by_slug": DerivedQuery("slug"),
        "find_all_by_tag": DerivedQuery("tags", "like", unique=False),
    }

    def find_by_slug(self, slug: str) -> Post | None:
        return self.find_derived("find_by_slug", slug)

    def find_all_by_tag(self, tag: str) -> list[Post]:
        """Posts whose free-form tags text contains `tag`."""
        return self.find_derived("find_all_by_tag", f"%{escape_like(tag)}%")
