"""Similarity advisor: proposes merges between tags with near-identical names."""

from collections.abc import Callable

import structlog

from domain.entities.tag_reports import MergeSuggestion
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character inserts, deletes and substitutions."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def name_similarity(a: str | None, b: str | None) -> float:
    """Similarity in [0, 1]: 1 - distance / longer length, case-insensitive.

    Two empty names are identical (1.0).
    """
    if a is None or b is None:
        return 0.0
    left = a.strip().lower()
    right = b.strip().lower()
    if left == right:
        return 1.0
    longest = max(len(left), len(right))
    return 1.0 - levenshtein_distance(left, right) / longest


class SimilarityService:
    """Read-only service that scores every pair of tag names."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def suggest_merges(self, threshold: float) -> list[MergeSuggestion]:
        """Pairs of tags whose name similarity is at least ``threshold``.

        Compares all n*(n-1)/2 pairs, so this is an administrative call. The
        recommended survivor is the tag with the greater (or equal) usage.
        """
        async with self._uow_factory() as uow:
            tags = await uow.tags.get_all()

        suggestions: list[MergeSuggestion] = []
        for i, tag_a in enumerate(tags):
            for tag_b in tags[i + 1 :]:
                similarity = name_similarity(tag_a.name, tag_b.name)
                if similarity < threshold:
                    continue
                target = tag_a if tag_a.usage_count >= tag_b.usage_count else tag_b
                suggestions.append(
                    MergeSuggestion(
                        tag_a=tag_a,
                        tag_b=tag_b,
                        similarity=similarity,
                        recommended_target_id=target.id,
                    )
                )

        suggestions.sort(key=lambda s: s.similarity, reverse=True)
        logger.debug(
            "merge_suggestions_computed",
            threshold=threshold,
            tags=len(tags),
            suggestions=len(suggestions),
        )
        return suggestions
