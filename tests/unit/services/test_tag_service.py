"""Unit tests for TagService."""

from unittest.mock import call
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    DuplicateTagError,
    ErrorCode,
    PostNotFoundError,
    TagInUseError,
    TagNotFoundError,
    ValidationError,
)
from domain.entities.tag_reports import TagSearchCriteria
from domain.services.tag_service import TagService
from tests.unit.conftest import FIXED_NOW, FakeUnitOfWork, make_tag


@pytest.fixture
def service(uow: FakeUnitOfWork, clock) -> TagService:
    uow.tags.create.side_effect = lambda tag: tag
    uow.tags.update.side_effect = lambda tag: tag
    return TagService(lambda: uow, clock=clock)


# --- create ---


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_tag_with_derived_slug(self, service: TagService, uow: FakeUnitOfWork):
        result = await service.create(name="  Spring Boot  ", color="#6db33f")

        assert result.name == "Spring Boot"
        assert result.slug == "spring-boot"
        assert result.color == "#6DB33F"
        assert result.usage_count == 0
        assert result.created_at == FIXED_NOW
        uow.tags.create.assert_called_once()
        assert uow.committed

    @pytest.mark.asyncio
    async def test_uses_explicit_slug(self, service: TagService):
        result = await service.create(name="Python", slug="  py-lang ")
        assert result.slug == "py-lang"

    @pytest.mark.asyncio
    async def test_blank_description_is_stored_as_none(self, service: TagService):
        result = await service.create(name="Python", description="   ")
        assert result.description is None

    @pytest.mark.asyncio
    async def test_duplicate_name_raises(self, service: TagService, uow: FakeUnitOfWork):
        uow.tags.get_by_name.return_value = make_tag("Python")

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.create(name="Python")

        assert exc_info.value.error_code == ErrorCode.DUPLICATE_TAG
        assert exc_info.value.field == "name"
        uow.tags.create.assert_not_called()
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_duplicate_slug_raises(self, service: TagService, uow: FakeUnitOfWork):
        uow.tags.get_by_slug.return_value = make_tag("python")

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.create(name="Python!")

        assert exc_info.value.field == "slug"

    @pytest.mark.asyncio
    async def test_names_differing_in_case_are_distinct(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        uow.tags.get_by_name.side_effect = lambda name: make_tag("python") if name == "python" else None

        result = await service.create(name="Python", slug="python-upper")

        assert result.name == "Python"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
    async def test_invalid_name_raises(self, service: TagService, name):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(name=name)
        assert exc_info.value.details == {"field": "name"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("color", ["red", "#12345", "#GGGGGG", "123456"])
    async def test_invalid_color_raises(self, service: TagService, color: str):
        with pytest.raises(ValidationError):
            await service.create(name="Python", color=color)

    @pytest.mark.asyncio
    async def test_long_description_raises(self, service: TagService):
        with pytest.raises(ValidationError):
            await service.create(name="Python", description="d" * 501)

    @pytest.mark.asyncio
    async def test_integrity_error_maps_to_duplicate(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        uow.tags.create.side_effect = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: tags.name")
        )

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.create(name="Python")

        assert exc_info.value.details == {"name": "Python"}
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_slug_collision_on_insert_names_the_slug(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        uow.tags.create.side_effect = IntegrityError(
            "INSERT",
            {},
            Exception('duplicate key value violates unique constraint "uq_tags_slug"'),
        )

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.create(name="Python", slug="py")

        assert exc_info.value.field == "slug"
        assert exc_info.value.details == {"slug": "py"}

    @pytest.mark.asyncio
    async def test_non_ascii_name_gets_random_slug(self, service: TagService):
        result = await service.create(name="日本語")

        assert result.name == "日本語"
        assert result.slug.startswith("tag-")
        assert len(result.slug) == len("tag-") + 7


# --- find_or_create_by_name ---


class TestFindOrCreateByName:
    @pytest.mark.asyncio
    async def test_returns_existing_case_insensitively(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        existing = make_tag("Python", description="original", color="#111111")
        uow.tags.get_by_name_ci.return_value = existing

        result = await service.find_or_create_by_name("python", description="new", color="#222222")

        assert result is existing
        assert result.description == "original"
        assert result.color == "#111111"
        uow.tags.create.assert_not_called()
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_creates_when_missing(self, service: TagService, uow: FakeUnitOfWork):
        result = await service.find_or_create_by_name("Rust", description="Systems", color="#dea584")

        assert result.name == "Rust"
        assert result.slug == "rust"
        assert result.description == "Systems"
        assert result.color == "#DEA584"
        assert uow.committed

    @pytest.mark.asyncio
    async def test_picks_free_slug_when_base_taken(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        taken = {"c", "c-2"}
        uow.tags.get_by_slug.side_effect = lambda slug: make_tag(slug) if slug in taken else None

        result = await service.find_or_create_by_name("C#")

        assert result.slug == "c-3"

    @pytest.mark.asyncio
    async def test_blank_name_raises(self, service: TagService):
        with pytest.raises(ValidationError):
            await service.find_or_create_by_name("  ")


# --- get_or_create ---


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_empty_list_returns_empty(self, service: TagService, uow: FakeUnitOfWork):
        assert await service.get_or_create([]) == []
        uow.tags.get_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_mixes_existing_and_new_in_input_order(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        java = make_tag("Java", usage_count=4)
        uow.tags.get_by_name.side_effect = lambda name: java if name == "Java" else None

        result = await service.get_or_create(["Kotlin", " Java ", "", "  ", "Scala"])

        assert [tag.name for tag in result] == ["Kotlin", "Java", "Scala"]
        assert result[1] is java
        assert uow.tags.create.call_count == 2
        assert uow.committed

    @pytest.mark.asyncio
    async def test_repeated_name_creates_once(self, service: TagService, uow: FakeUnitOfWork):
        result = await service.get_or_create(["Go", "Go"])

        assert len(result) == 2
        assert result[0] is result[1]
        uow.tags.create.assert_called_once()

    @pytest.mark.asyncio
    async def test_lookup_is_case_sensitive(self, service: TagService, uow: FakeUnitOfWork):
        uow.tags.get_by_name.side_effect = lambda name: make_tag("go") if name == "go" else None
        uow.tags.get_by_slug.side_effect = lambda slug: make_tag("go") if slug == "go" else None

        result = await service.get_or_create(["Go"])

        assert result[0].name == "Go"
        assert result[0].slug == "go-2"


# --- update ---


class TestUpdate:
    @pytest.mark.asyncio
    async def test_not_found_raises(self, service: TagService, tag_id: UUID):
        with pytest.raises(TagNotFoundError):
            await service.update(tag_id, name="New")

    @pytest.mark.asyncio
    async def test_updates_supplied_fields_only(self, service: TagService, uow: FakeUnitOfWork):
        tag = make_tag("Python", description="Snakes", color="#3776AB", usage_count=7)
        uow.tags.get.return_value = tag

        result = await service.update(tag.id, name="Python 3")

        assert result.name == "Python 3"
        assert result.slug == "python"
        assert result.description == "Snakes"
        assert result.color == "#3776AB"
        assert result.usage_count == 7
        assert result.updated_at == FIXED_NOW
        assert uow.committed

    @pytest.mark.asyncio
    async def test_empty_strings_clear_description_and_color(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        tag = make_tag("Python", description="Snakes", color="#3776AB")
        uow.tags.get.return_value = tag

        result = await service.update(tag.id, description="", color="")

        assert result.description is None
        assert result.color is None

    @pytest.mark.asyncio
    async def test_name_taken_by_other_tag_raises(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        tag = make_tag("Python")
        uow.tags.get.return_value = tag
        uow.tags.get_by_name.return_value = make_tag("Rust")

        with pytest.raises(DuplicateTagError):
            await service.update(tag.id, name="Rust")

        uow.tags.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_slug_taken_by_other_tag_raises(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        tag = make_tag("Python")
        uow.tags.get.return_value = tag
        uow.tags.get_by_slug.return_value = make_tag("Rust")

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.update(tag.id, slug="rust")

        assert exc_info.value.field == "slug"

    @pytest.mark.asyncio
    async def test_concurrent_slug_clash_on_write_names_the_slug(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        tag = make_tag("Python")
        uow.tags.get.return_value = tag
        uow.tags.update.side_effect = IntegrityError(
            "UPDATE", {}, Exception("UNIQUE constraint failed: tags.slug")
        )

        with pytest.raises(DuplicateTagError) as exc_info:
            await service.update(tag.id, slug="py")

        assert exc_info.value.details == {"slug": "py"}
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_invalid_slug_raises(self, service: TagService, uow: FakeUnitOfWork):
        tag = make_tag("Python")
        uow.tags.get.return_value = tag

        with pytest.raises(ValidationError):
            await service.update(tag.id, slug="Not A Slug!")


# --- validate_name ---


class TestValidateName:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_blank_is_invalid(self, service: TagService, name):
        result = await service.validate_name(name)
        assert not result.valid
        assert result.error == "Tag name is required"

    @pytest.mark.asyncio
    async def test_too_long_is_invalid(self, service: TagService):
        result = await service.validate_name("a" * 101)
        assert not result.valid

    @pytest.mark.asyncio
    async def test_punctuation_is_invalid(self, service: TagService):
        result = await service.validate_name("C++")
        assert not result.valid

    @pytest.mark.asyncio
    async def test_existing_name_is_reported(self, service: TagService, uow: FakeUnitOfWork):
        existing = make_tag("Python")
        uow.tags.get_by_name.return_value = existing

        result = await service.validate_name("Python")

        assert not result.valid
        assert result.existing is existing

    @pytest.mark.asyncio
    async def test_valid_name_suggests_slug(self, service: TagService, uow: FakeUnitOfWork):
        result = await service.validate_name("Machine Learning")

        assert result.valid
        assert result.suggested_slug == "machine-learning"
        uow.tags.create.assert_not_called()


# --- delete ---


class TestDelete:
    @pytest.mark.asyncio
    async def test_deletes_unused_tag(self, service: TagService, uow: FakeUnitOfWork):
        tag = make_tag("Old")
        uow.tags.get_for_update.return_value = tag

        await service.delete(tag.id)

        uow.tags.delete.assert_called_once_with(tag.id)
        assert uow.committed

    @pytest.mark.asyncio
    async def test_tag_in_use_is_refused(self, service: TagService, uow: FakeUnitOfWork):
        tag = make_tag("Busy", usage_count=3)
        uow.tags.get_for_update.return_value = tag
        uow.tags.count_posts.return_value = 3

        with pytest.raises(TagInUseError) as exc_info:
            await service.delete(tag.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["usage_count"] == 3
        uow.tags.delete.assert_not_called()
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_real_associations_block_even_with_stale_counter(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        uow.tags.get_for_update.return_value = make_tag("Drifted", usage_count=0)
        uow.tags.count_posts.return_value = 2

        with pytest.raises(TagInUseError):
            await service.delete(uuid4())

    @pytest.mark.asyncio
    async def test_not_found_raises(self, service: TagService, tag_id: UUID):
        with pytest.raises(TagNotFoundError):
            await service.delete(tag_id)

    @pytest.mark.asyncio
    async def test_validate_deletion_reports_usage(
        self, service: TagService, uow: FakeUnitOfWork
    ):
        tag = make_tag("Busy", usage_count=2)
        uow.tags.get.return_value = tag

        check = await service.validate_deletion(tag.id)

        assert not check.can_delete
        assert "2 posts" in check.message


class TestForceDelete:
    @pytest.mark.asyncio
    async def test_detaches_then_deletes(self, service: TagService, uow: FakeUnitOfWork):
        tag = make_tag("Busy", usage_count=2)
        posts = {uuid4(), uuid4()}
        uow.tags.get_for_update.return_value = tag
        uow.tags.get_post_ids.return_value = posts
        uow.tags.unlink.return_value = True

        detached = await service.force_delete(tag.id)

        assert detached == 2
        assert uow.tags.unlink.call_count == 2
        assert uow.tags.decrement_usage.call_count == 2
        uow.tags.delete.assert_called_once_with(tag.id)
        assert uow.committed

    @pytest.mark.asyncio
    async def test_not_found_raises(self, service: TagService, tag_id: UUID):
        with pytest.raises(TagNotFoundError):
            await service.force_delete(tag_id)


class TestCleanupUnused:
    @pytest.mark.asyncio
    async def test_deletes_only_unused(self, service: TagService, uow: FakeUnitOfWork):
        unused = make_tag("Unused")
        used = make_tag("Used", usage_count=1)
        uow.tags.get_all.return_value = [unused, used]
        uow.tags.get_for_update.return_value = unused

        deleted = await service.cleanup_unused()

        assert deleted == 1
        uow.tags.delete.assert_called_once_with(unused.id)

    @pytest.mark.asyncio
    async def test_skips_tags_that_gained_posts(self, service: TagService, uow: FakeUnitOfWork):
        first = make_tag("First")
        second = make_tag("Second")
        uow.tags.get_all.return_value = [first, second]
        uow.tags.get_for_update.side_effect = lambda tag_id: first if tag_id == first.id else second
        uow.tags.count_posts.side_effect = lambda tag_id: 1 if tag_id == first.id else 0

        deleted = await service.cleanup_unused()

        assert deleted == 1
        assert uow.tags.delete.call_args_list == [call(second.id)]


# --- lookups ---


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_by_slug_not_found(self, service: TagService):
        with pytest.raises(TagNotFoundError) as exc_info:
            await service.get_by_slug("missing")
        assert exc_info.value.details == {"slug": "missing"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keyword", [None, "", "   "])
    async def test_blank_search_returns_nothing(
        self, service: TagService, uow: FakeUnitOfWork, keyword
    ):
        assert await service.search(keyword) == []
        uow.tags.search_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_trims_keyword(self, service: TagService, uow: FakeUnitOfWork):
        uow.tags.search_by_name.return_value = [make_tag("Python")]

        result = await service.search("  pyth ")

        assert len(result) == 1
        uow.tags.search_by_name.assert_called_once_with("pyth")

    @pytest.mark.asyncio
    async def test_tags_for_unknown_post_raises(
        self, service: TagService, uow: FakeUnitOfWork, post_id: UUID
    ):
        uow.posts.exists.return_value = False

        with pytest.raises(PostNotFoundError):
            await service.get_tags_for_post(post_id)


# --- suggestions and advanced search ---


class TestSuggest:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "  "])
    async def test_blank_query_suggests_nothing(
        self, service: TagService, uow: FakeUnitOfWork, query
    ):
        assert await service.suggest(query) == []
        uow.tags.search_by_name.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("limit", "expected"), [(8, 8), (0, 1), (-3, 1), (50, 20)])
    async def test_limit_is_clamped(
        self, service: TagService, uow: FakeUnitOfWork, limit, expected
    ):
        uow.tags.search_by_name.return_value = []

        await service.suggest(" py ", limit)

        uow.tags.search_by_name.assert_called_once_with("py", limit=expected)


class TestAdvancedSearch:
    @pytest.mark.asyncio
    async def test_passes_criteria_through(self, service: TagService, uow: FakeUnitOfWork):
        criteria = TagSearchCriteria(name="py", min_usage=1, has_color=True, sort_by="usage")
        uow.tags.search.return_value = [make_tag("Python", usage_count=3)]

        result = await service.advanced_search(criteria)

        assert [t.name for t in result] == ["Python"]
        uow.tags.search.assert_called_once_with(criteria)

    @pytest.mark.asyncio
    async def test_unknown_sort_field_rejected(self, service: TagService, uow: FakeUnitOfWork):
        with pytest.raises(ValidationError) as exc_info:
            await service.advanced_search(TagSearchCriteria(sort_by="popularity"))

        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR
        uow.tags.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_inverted_usage_range_rejected(self, service: TagService):
        with pytest.raises(ValidationError):
            await service.advanced_search(TagSearchCriteria(min_usage=5, max_usage=2))
