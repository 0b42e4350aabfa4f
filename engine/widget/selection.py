"""
Widget Engine — Review Selection

Pure function: (reviews, reviews spec) → ordered, capped list of reviews.
No rendering. No IO. Same input → same output.

Order of operations:
  1. drop hidden reviews
  2. drop reviews under the minimum rating
  3. drop reviews without text (unless allowed)
  4. apply include / exclude filters
  5. stable sort, pinned first
  6. truncate to maxReviews
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from engine.widget.config import ReviewFilter, ReviewsSpec
from engine.widget.types import Review


def select_reviews(
    reviews: Iterable[Review],
    spec: ReviewsSpec,
    pinned_first: bool = True,
) -> list[Review]:
    """
    Filter, sort and cap reviews according to a widget's reviews spec.

    Sorting is stable: reviews with equal pin status and equal sort key
    keep their input order.
    """
    selected = [r for r in reviews if _passes(r, spec)]

    sort_key = _sort_key(spec.sort_by)
    if pinned_first:
        selected.sort(key=lambda r: (0 if r.pinned else 1, sort_key(r)))
    else:
        selected.sort(key=sort_key)

    if spec.max_reviews != "all":
        selected = selected[: spec.max_reviews]

    return selected


def _sort_key(sort_by: str) -> Callable[[Review], float]:
    if sort_by == "highest":
        return lambda r: -r.rating
    if sort_by == "lowest":
        return lambda r: r.rating
    return lambda r: -_timestamp(r.date)


def _passes(review: Review, spec: ReviewsSpec) -> bool:
    if review.hidden:
        return False
    if review.rating < spec.min_rating:
        return False
    if not spec.show_without_text and not _has_text(review):
        return False

    include = [f for f in spec.include_filters if f.value.strip()]
    if include and not any(_matches(review, f) for f in include):
        return False

    exclude = [f for f in spec.exclude_filters if f.value.strip()]
    if any(_matches(review, f) for f in exclude):
        return False

    return True


def _has_text(review: Review) -> bool:
    return bool(review.text and review.text.strip())


def _matches(review: Review, rule: ReviewFilter) -> bool:
    needle = rule.value.strip().lower()
    if rule.type == "author":
        return needle in review.author_name.lower()
    if rule.type == "tag":
        return any(tag.strip().lower() == needle for tag in review.tags)
    return needle in (review.text or "").lower()


def _timestamp(value: datetime) -> float:
    # Naive datetimes from providers are UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()
