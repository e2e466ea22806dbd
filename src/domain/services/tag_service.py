"""Tag service layer: identity, lookup and deletion lifecycle."""

import re
from collections.abc import Callable
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.clock import Clock, utcnow
from core.exceptions import (
    AppException,
    DuplicateTagError,
    PostNotFoundError,
    TagInUseError,
    TagNotFoundError,
    ValidationError,
)
from domain.entities.tag import (
    NAME_MAX_LENGTH,
    Tag,
    generate_slug,
    normalize_color,
    normalize_description,
    normalize_name,
    normalize_slug,
)
from domain.entities.tag_reports import DeletionCheck, NameCheck, TagSearchCriteria
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.usage_service import UsageService

logger = structlog.get_logger()

# Letters (any script), digits, underscore, whitespace and hyphens
_NAME_CHARS_RE = re.compile(r"^[\w\s-]+$")

DEFAULT_SUGGESTION_LIMIT = 8
MAX_SUGGESTIONS = 20
SEARCH_SORT_FIELDS = ("name", "usage", "created", "updated")


def _duplicate_from(exc: IntegrityError, name: str, slug: str) -> DuplicateTagError:
    """Map a unique violation on tags to the field that collided.

    SQLite reports ``tags.slug``, PostgreSQL the ``uq_tags_slug`` constraint.
    """
    if "slug" in str(exc.orig):
        return DuplicateTagError("slug", slug)
    return DuplicateTagError("name", name)


class TagService:
    """Service layer for Tag identity and lifecycle."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        usage_service: UsageService | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._usage = usage_service or UsageService(uow_factory, clock=clock)
        self._clock = clock

    # --- Lookups ---

    async def get_by_id(self, tag_id: UUID) -> Tag:
        async with self._uow_factory() as uow:
            tag = await uow.tags.get(tag_id)
            if not tag:
                raise TagNotFoundError(str(tag_id))
            return tag

    async def get_by_slug(self, slug: str) -> Tag:
        async with self._uow_factory() as uow:
            tag = await uow.tags.get_by_slug(slug)
            if not tag:
                raise TagNotFoundError(slug, field="slug")
            return tag

    async def get_by_name(self, name: str) -> Tag:
        async with self._uow_factory() as uow:
            tag = await uow.tags.get_by_name(name)
            if not tag:
                raise TagNotFoundError(name, field="name")
            return tag

    async def list_all(self) -> list[Tag]:
        """All tags ordered by name."""
        async with self._uow_factory() as uow:
            return await uow.tags.get_all()  # type: ignore[no-any-return]

    async def search(self, keyword: str | None) -> list[Tag]:
        """Case-insensitive containment match on tag names."""
        if not keyword or not keyword.strip():
            return []
        async with self._uow_factory() as uow:
            return await uow.tags.search_by_name(keyword.strip())  # type: ignore[no-any-return]

    async def suggest(
        self, query: str | None, limit: int = DEFAULT_SUGGESTION_LIMIT
    ) -> list[Tag]:
        """Autocomplete: the first few name matches, most used first.

        ``limit`` is clamped to 1..20; a blank query suggests nothing.
        """
        if not query or not query.strip():
            return []
        capped = min(max(limit, 1), MAX_SUGGESTIONS)
        async with self._uow_factory() as uow:
            return await uow.tags.search_by_name(  # type: ignore[no-any-return]
                query.strip(), limit=capped
            )

    async def advanced_search(self, criteria: TagSearchCriteria) -> list[Tag]:
        """Filter by name, description, usage range and color presence."""
        if criteria.sort_by not in SEARCH_SORT_FIELDS:
            raise ValidationError(
                f"sort_by must be one of {', '.join(SEARCH_SORT_FIELDS)}", field="sort_by"
            )
        if (
            criteria.min_usage is not None
            and criteria.max_usage is not None
            and criteria.max_usage < criteria.min_usage
        ):
            raise ValidationError(
                f"Invalid usage range: {criteria.min_usage}..{criteria.max_usage}",
                field="max_usage",
            )
        async with self._uow_factory() as uow:
            return await uow.tags.search(criteria)  # type: ignore[no-any-return]

    async def get_tags_for_post(self, post_id: UUID) -> list[Tag]:
        async with self._uow_factory() as uow:
            if not await uow.posts.exists(post_id):
                raise PostNotFoundError(str(post_id))
            return await uow.tags.get_for_post(post_id)  # type: ignore[no-any-return]

    # --- Creation ---

    async def create(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
        slug: str | None = None,
    ) -> Tag:
        """Create a tag. Name and slug must both be unused."""
        async with self._uow_factory() as uow:
            clean_name = normalize_name(name)
            clean_description = normalize_description(description)
            clean_color = normalize_color(color)
            clean_slug = (
                normalize_slug(slug) if slug and slug.strip() else generate_slug(clean_name)
            )

            if await uow.tags.get_by_name(clean_name):
                raise DuplicateTagError("name", clean_name)
            if await uow.tags.get_by_slug(clean_slug):
                raise DuplicateTagError("slug", clean_slug)

            created = await self._insert(
                uow, clean_name, clean_slug, clean_description, clean_color
            )
            await uow.commit()

        logger.info("tag_created", tag_id=str(created.id), name=created.name, slug=created.slug)
        return created

    async def find_or_create_by_name(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Tag:
        """Return the tag matching ``name`` case-insensitively, or create it.

        On the found path the existing tag is returned unchanged and the
        description/color arguments are ignored.
        """
        clean_name = normalize_name(name)
        async with self._uow_factory() as uow:
            existing = await uow.tags.get_by_name_ci(clean_name)
            if existing:
                logger.debug("tag_found", tag_id=str(existing.id), name=existing.name)
                return existing

            created = await self._insert(
                uow,
                clean_name,
                await self._available_slug(uow, generate_slug(clean_name)),
                normalize_description(description),
                normalize_color(color),
            )
            await uow.commit()

        logger.info("tag_created", tag_id=str(created.id), name=created.name, slug=created.slug)
        return created

    async def get_or_create(self, names: list[str]) -> list[Tag]:
        """Resolve a list of names to tags, creating the missing ones.

        Lookup is exact (case-sensitive) on the trimmed name; blank entries
        are skipped; the result follows input order.
        """
        if not names:
            return []

        tags: list[Tag] = []
        resolved: dict[str, Tag] = {}
        async with self._uow_factory() as uow:
            for raw in names:
                if raw is None or not raw.strip():
                    continue
                clean_name = normalize_name(raw)
                tag = resolved.get(clean_name)
                if tag is None:
                    tag = await uow.tags.get_by_name(clean_name)
                if tag is None:
                    tag = await self._insert(
                        uow,
                        clean_name,
                        await self._available_slug(uow, generate_slug(clean_name)),
                        None,
                        None,
                    )
                    logger.info("tag_created", tag_id=str(tag.id), name=tag.name)
                resolved[clean_name] = tag
                tags.append(tag)
            await uow.commit()
        return tags

    # --- Field edits ---

    async def update(
        self,
        tag_id: UUID,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> Tag:
        """Update the supplied fields only.

        ``None`` leaves a field unchanged; an empty description or color
        clears it. usage_count and associations are never touched here.
        """
        async with self._uow_factory() as uow:
            tag = await uow.tags.get(tag_id)
            if not tag:
                raise TagNotFoundError(str(tag_id))

            if name is not None:
                clean_name = normalize_name(name)
                if clean_name != tag.name:
                    other = await uow.tags.get_by_name(clean_name)
                    if other and other.id != tag.id:
                        raise DuplicateTagError("name", clean_name)
                    tag.name = clean_name

            if slug is not None:
                clean_slug = normalize_slug(slug)
                if clean_slug != tag.slug:
                    other = await uow.tags.get_by_slug(clean_slug)
                    if other and other.id != tag.id:
                        raise DuplicateTagError("slug", clean_slug)
                    tag.slug = clean_slug

            if description is not None:
                tag.description = normalize_description(description)

            if color is not None:
                tag.color = normalize_color(color)

            tag.updated_at = self._clock()
            try:
                updated = await uow.tags.update(tag)
            except IntegrityError as exc:
                raise _duplicate_from(exc, tag.name, tag.slug) from exc
            await uow.commit()

        logger.info("tag_updated", tag_id=str(tag_id))
        return updated

    # --- Validation helpers ---

    async def validate_name(self, name: str | None) -> NameCheck:
        """Check a candidate name without creating anything."""
        value = (name or "").strip()
        if not value:
            return NameCheck(valid=False, error="Tag name is required")
        if len(value) > NAME_MAX_LENGTH:
            return NameCheck(
                valid=False,
                error=f"Tag name must not exceed {NAME_MAX_LENGTH} characters",
            )
        if not _NAME_CHARS_RE.match(value):
            return NameCheck(
                valid=False,
                error="Tag name may only contain letters, digits, spaces and hyphens",
            )

        async with self._uow_factory() as uow:
            existing = await uow.tags.get_by_name(value)
        if existing:
            return NameCheck(valid=False, error="Tag name already exists", existing=existing)
        return NameCheck(valid=True, suggested_slug=generate_slug(value))

    async def validate_deletion(self, tag_id: UUID) -> DeletionCheck:
        tag = await self.get_by_id(tag_id)
        return DeletionCheck(tag_id=tag.id, name=tag.name, usage_count=tag.usage_count)

    # --- Deletion ---

    async def delete(self, tag_id: UUID) -> None:
        """Strict delete: refused while the tag is attached to any post."""
        async with self._uow_factory() as uow:
            tag = await uow.tags.get_for_update(tag_id)
            if not tag:
                raise TagNotFoundError(str(tag_id))

            in_use = max(tag.usage_count, await uow.tags.count_posts(tag_id))
            if in_use > 0:
                raise TagInUseError(str(tag_id), tag.name, in_use)

            await uow.tags.delete(tag_id)
            await uow.commit()

        logger.info("tag_deleted", tag_id=str(tag_id), name=tag.name)

    async def force_delete(self, tag_id: UUID) -> int:
        """Detach the tag from every post, then delete it.

        Returns the number of posts the tag was detached from.
        """
        async with self._uow_factory() as uow:
            tag = await uow.tags.get_for_update(tag_id)
            if not tag:
                raise TagNotFoundError(str(tag_id))

            post_ids = await uow.tags.get_post_ids(tag_id)
            for post_id in post_ids:
                if await uow.tags.unlink(tag_id, post_id):
                    await self._usage.decrement(uow, tag_id)

            await uow.tags.delete(tag_id)
            await uow.commit()

        logger.info(
            "tag_force_deleted",
            tag_id=str(tag_id),
            name=tag.name,
            detached_posts=len(post_ids),
        )
        return len(post_ids)

    async def cleanup_unused(self) -> int:
        """Delete every tag with no associated posts; returns how many went."""
        async with self._uow_factory() as uow:
            candidates = [tag for tag in await uow.tags.get_all() if not tag.is_used]

        deleted = 0
        for tag in candidates:
            try:
                await self.delete(tag.id)
            except AppException as exc:
                logger.warning(
                    "unused_tag_cleanup_skipped",
                    tag_id=str(tag.id),
                    tag_name=tag.name,
                    reason=exc.message,
                )
                continue
            deleted += 1

        logger.info("unused_tags_cleaned", deleted=deleted, candidates=len(candidates))
        return deleted

    # --- Helpers ---

    async def _insert(
        self,
        uow: IUnitOfWork,
        name: str,
        slug: str,
        description: str | None,
        color: str | None,
    ) -> Tag:
        now = self._clock()
        tag = Tag(
            name=name,
            slug=slug,
            description=description,
            color=color,
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        try:
            return await uow.tags.create(tag)  # type: ignore[no-any-return]
        except IntegrityError as exc:
            # A concurrent writer took the name or slug after our check
            raise _duplicate_from(exc, name, slug) from exc

    async def _available_slug(self, uow: IUnitOfWork, base: str) -> str:
        """First of ``base``, ``base-2``, ``base-3``... not taken by another tag."""
        slug = base
        suffix = 2
        while await uow.tags.get_by_slug(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug
