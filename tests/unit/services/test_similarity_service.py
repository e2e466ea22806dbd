"""Unit tests for name similarity and merge suggestions."""

import pytest

from domain.services.similarity_service import (
    SimilarityService,
    levenshtein_distance,
    name_similarity,
)
from tests.unit.conftest import FakeUnitOfWork, make_tag


class TestLevenshtein:
    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, a: str, b: str, expected: int):
        assert levenshtein_distance(a, b) == expected
        assert levenshtein_distance(b, a) == expected


class TestNameSimilarity:
    def test_none_is_zero(self):
        assert name_similarity(None, "python") == 0.0
        assert name_similarity("python", None) == 0.0

    def test_case_and_whitespace_are_ignored(self):
        assert name_similarity("  Python ", "python") == 1.0

    def test_both_empty_are_identical(self):
        assert name_similarity("", "  ") == 1.0

    def test_partial_similarity(self):
        # "javascript" vs "javascripts": one insertion over 11 characters
        assert name_similarity("JavaScript", "JavaScripts") == pytest.approx(1 - 1 / 11)


class TestSuggestMerges:
    @pytest.mark.asyncio
    async def test_suggests_close_pairs_sorted_by_similarity(self, uow: FakeUnitOfWork):
        springboot = make_tag("springboot", usage_count=1)
        spring_boot = make_tag("spring-boot", usage_count=5)
        pythons = make_tag("pythons", usage_count=2)
        python = make_tag("python", usage_count=2)
        rust = make_tag("rust")
        uow.tags.get_all.return_value = [springboot, spring_boot, pythons, python, rust]

        suggestions = await SimilarityService(lambda: uow).suggest_merges(0.8)

        assert len(suggestions) == 2
        assert [s.similarity for s in suggestions] == sorted(
            (s.similarity for s in suggestions), reverse=True
        )
        by_pair = {(s.tag_a.name, s.tag_b.name): s for s in suggestions}
        assert by_pair[("springboot", "spring-boot")].recommended_target_id == spring_boot.id
        # Equal usage keeps the first tag of the pair as survivor
        assert by_pair[("pythons", "python")].recommended_target_id == pythons.id

    @pytest.mark.asyncio
    async def test_threshold_above_one_returns_nothing(self, uow: FakeUnitOfWork):
        uow.tags.get_all.return_value = [make_tag("a"), make_tag("A ")]

        assert await SimilarityService(lambda: uow).suggest_merges(1.1) == []

    @pytest.mark.asyncio
    async def test_zero_threshold_returns_every_pair(self, uow: FakeUnitOfWork):
        uow.tags.get_all.return_value = [make_tag("a"), make_tag("b"), make_tag("c")]

        assert len(await SimilarityService(lambda: uow).suggest_merges(0.0)) == 3


class TestSimilarityBoundaries:
    def test_identical_names(self):
        assert name_similarity("java", "java") == 1.0

    def test_unrelated_names(self):
        assert name_similarity("java", "spring") < 0.5
