"""
Category and tag resolution on the destination.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from .exceptions import TagCreationError
from .sanitize import sanitize_text_field, slugify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .protocols import ContentRepository

logger: logging.Logger = logging.getLogger(__name__)


class TagResolutionResult(NamedTuple):
    """Result of tag resolution."""

    tag_ids: list[int]
    """Ids of existing or newly created tags, in the order received."""
    skipped: list[str]
    """Tag names that could not be created."""


def resolve_categories(repository: ContentRepository, post_id: int, names: Sequence[str]) -> list[int]:
    """Find or create categories by slug and assign them to a post.

    Categories are matched by the slug of their name, so "News" and "news"
    resolve to the same category. An empty list leaves the post untouched.

    Returns:
        The assigned category ids
    """
    if not names:
        return []

    category_ids: list[int] = []
    for name in names:
        clean_name = sanitize_text_field(name)
        slug = slugify(clean_name)
        if not slug:
            logger.warning(f"Skipping category {name!r} on post {post_id}: name has no letters or digits")
            continue

        category_id = repository.find_category_by_slug(slug)
        if category_id is None:
            category_id = repository.create_category(clean_name, slug)
            logger.debug(f"Created category: {clean_name} ({slug}) -> {category_id}")
        else:
            logger.debug(f"Using existing category: {clean_name} -> {category_id}")

        if category_id not in category_ids:
            category_ids.append(category_id)

    repository.set_post_terms(post_id, category_ids, "category")
    return category_ids


def resolve_tags(repository: ContentRepository, post_id: int, names: Sequence[str]) -> TagResolutionResult:
    """Find or create tags by exact name and assign them to a post.

    A tag that cannot be created is logged and skipped; the remaining tags
    are still assigned. An empty list leaves the post untouched.
    """
    if not names:
        return TagResolutionResult(tag_ids=[], skipped=[])

    tag_ids: list[int] = []
    skipped: list[str] = []
    for name in names:
        clean_name = sanitize_text_field(name)
        tag_id = repository.find_tag_by_name(clean_name)
        if tag_id is None:
            try:
                tag_id = repository.create_tag(clean_name)
            except TagCreationError as e:
                logger.warning(f"Skipping tag {clean_name!r} on post {post_id}: {e}")
                skipped.append(clean_name)
                continue
            logger.debug(f"Created tag: {clean_name} -> {tag_id}")

        if tag_id not in tag_ids:
            tag_ids.append(tag_id)

    repository.set_post_terms(post_id, tag_ids, "post_tag")
    return TagResolutionResult(tag_ids=tag_ids, skipped=skipped)
