"""
Review Selection -- Filter / Sort / Cap Tests

select_reviews() guarantees, for every review set and spec:
  - output length <= maxReviews (or input length for "all")
  - every output review meets minRating and has text unless
    showWithoutText
  - pinned reviews precede unpinned ones, for every sortBy
  - ties keep their input order
"""

import random
from datetime import UTC, datetime, timedelta

import pytest

from engine.widget.config import ReviewsSpec
from engine.widget.selection import select_reviews
from engine.widget.types import Review

BASE_DATE = datetime(2025, 1, 1, tzinfo=UTC)


def make_review(id, rating=5, text="Great service", pinned=False, days=0, **kwargs):
    return Review(
        id=id,
        author_name=kwargs.pop("author_name", f"Author {id}"),
        rating=rating,
        text=text,
        date=kwargs.pop("date", BASE_DATE + timedelta(days=days)),
        pinned=pinned,
        **kwargs,
    )


def spec(**kwargs):
    return ReviewsSpec(**kwargs)


def ids(reviews):
    return [r.id for r in reviews]


def random_reviews(rng, count):
    texts = ["Great", "", None, "   ", "Slow delivery", "Friendly staff"]
    return [
        make_review(
            f"r{i}",
            rating=rng.randint(1, 5),
            text=rng.choice(texts),
            pinned=rng.random() < 0.25,
            days=rng.randint(0, 5),
        )
        for i in range(count)
    ]


# ============================================================================
# Basic scenarios
# ============================================================================


class TestScenarios:
    def test_single_review_passes_unchanged(self):
        review = make_review("r1", rating=5, text="x")
        result = select_reviews([review], spec(min_rating=1, max_reviews="all", sort_by="newest"))
        assert result == [review]

    def test_min_rating_drops_low(self):
        reviews = [make_review("low", rating=2), make_review("high", rating=5)]
        assert ids(select_reviews(reviews, spec(min_rating=3))) == ["high"]

    def test_fractional_min_rating(self):
        reviews = [make_review("four", rating=4), make_review("five", rating=5)]
        assert ids(select_reviews(reviews, spec(min_rating=4.5))) == ["five"]

    def test_empty_input(self):
        assert select_reviews([], spec()) == []

    def test_does_not_mutate_input(self):
        reviews = [make_review("a", rating=1), make_review("b", rating=5)]
        select_reviews(reviews, spec(sort_by="highest"))
        assert ids(reviews) == ["a", "b"]


class TestTextFilter:
    def test_missing_text_dropped_by_default(self):
        reviews = [make_review("a", text=None), make_review("b", text="Nice")]
        assert ids(select_reviews(reviews, spec())) == ["b"]

    def test_whitespace_only_counts_as_missing(self):
        reviews = [make_review("a", text="   ")]
        assert select_reviews(reviews, spec()) == []

    def test_show_without_text(self):
        reviews = [make_review("a", text=None), make_review("b", text="")]
        assert len(select_reviews(reviews, spec(show_without_text=True))) == 2


class TestHidden:
    def test_hidden_reviews_never_shown(self):
        reviews = [make_review("a", hidden=True), make_review("b")]
        assert ids(select_reviews(reviews, spec(show_without_text=True))) == ["b"]

    def test_hidden_pinned_still_hidden(self):
        reviews = [make_review("a", hidden=True, pinned=True)]
        assert select_reviews(reviews, spec()) == []


class TestIncludeExcludeFilters:
    def test_include_text_substring_case_insensitive(self):
        reviews = [make_review("a", text="Friendly STAFF"), make_review("b", text="Slow")]
        result = select_reviews(reviews, spec(include_filters=[{"type": "text", "value": "staff"}]))
        assert ids(result) == ["a"]

    def test_include_any_of(self):
        reviews = [
            make_review("a", text="Friendly"),
            make_review("b", text="Fast"),
            make_review("c", text="Meh"),
        ]
        filters = [{"type": "text", "value": "friendly"}, {"type": "text", "value": "fast"}]
        assert ids(select_reviews(reviews, spec(include_filters=filters))) == ["a", "b"]

    def test_exclude_author(self):
        reviews = [make_review("a", author_name="Spam Bot"), make_review("b", author_name="Jane")]
        result = select_reviews(reviews, spec(exclude_filters=[{"type": "author", "value": "bot"}]))
        assert ids(result) == ["b"]

    def test_tag_match_is_exact(self):
        reviews = [
            make_review("a", tags=["Delivery"]),
            make_review("b", tags=["delivery-late"]),
        ]
        result = select_reviews(reviews, spec(include_filters=[{"type": "tag", "value": "delivery"}]))
        assert ids(result) == ["a"]

    def test_blank_filter_ignored(self):
        reviews = [make_review("a"), make_review("b")]
        result = select_reviews(
            reviews,
            spec(include_filters=[{"type": "text", "value": "  "}], exclude_filters=[{"value": ""}]),
        )
        assert ids(result) == ["a", "b"]


# ============================================================================
# Sorting
# ============================================================================


class TestSorting:
    def test_newest_first(self):
        reviews = [make_review("old", days=0), make_review("new", days=3), make_review("mid", days=1)]
        assert ids(select_reviews(reviews, spec(sort_by="newest"))) == ["new", "mid", "old"]

    def test_highest_first(self):
        reviews = [make_review("three", rating=3), make_review("five", rating=5), make_review("four", rating=4)]
        assert ids(select_reviews(reviews, spec(sort_by="highest"))) == ["five", "four", "three"]

    def test_lowest_first(self):
        reviews = [make_review("three", rating=3), make_review("five", rating=5), make_review("one", rating=1)]
        assert ids(select_reviews(reviews, spec(sort_by="lowest"))) == ["one", "three", "five"]

    def test_naive_dates_compare_as_utc(self):
        reviews = [
            make_review("naive", date=datetime(2025, 1, 2, 12, 0)),
            make_review("aware", date=datetime(2025, 1, 2, 13, 0, tzinfo=UTC)),
        ]
        assert ids(select_reviews(reviews, spec(sort_by="newest"))) == ["aware", "naive"]

    @pytest.mark.parametrize("sort_by", ["newest", "highest", "lowest"])
    def test_pinned_first_for_every_sort(self, sort_by):
        reviews = [
            make_review("a", rating=5, days=5),
            make_review("pinned", rating=2, days=0, pinned=True),
            make_review("b", rating=4, days=3),
        ]
        assert ids(select_reviews(reviews, spec(sort_by=sort_by)))[0] == "pinned"

    def test_ties_keep_input_order(self):
        reviews = [make_review(f"r{i}", rating=5) for i in range(6)]
        assert ids(select_reviews(reviews, spec(sort_by="highest"))) == [f"r{i}" for i in range(6)]

    def test_pinned_ties_keep_input_order(self):
        reviews = [
            make_review("p1", pinned=True),
            make_review("u1"),
            make_review("p2", pinned=True),
            make_review("u2"),
        ]
        assert ids(select_reviews(reviews, spec(sort_by="newest"))) == ["p1", "p2", "u1", "u2"]

    def test_pinned_first_can_be_disabled(self):
        reviews = [make_review("old", days=0, pinned=True), make_review("new", days=2)]
        result = select_reviews(reviews, spec(sort_by="newest"), pinned_first=False)
        assert ids(result) == ["new", "old"]


# ============================================================================
# Cap
# ============================================================================


class TestMaxReviews:
    def test_truncates_after_sorting(self):
        reviews = [make_review(f"r{i}", rating=(i % 5) + 1) for i in range(10)]
        result = select_reviews(reviews, spec(sort_by="highest", max_reviews=2))
        assert len(result) == 2
        assert all(r.rating == 5 for r in result)

    def test_pinned_survive_truncation(self):
        reviews = [make_review("a", rating=5), make_review("b", rating=5), make_review("p", rating=1, pinned=True)]
        assert ids(select_reviews(reviews, spec(max_reviews=1))) == ["p"]

    def test_all_keeps_everything(self):
        reviews = [make_review(f"r{i}") for i in range(25)]
        assert len(select_reviews(reviews, spec(max_reviews="all"))) == 25


# ============================================================================
# Properties over generated inputs
# ============================================================================


class TestProperties:
    """Invariants checked over seeded random review sets and specs."""

    @pytest.mark.parametrize("seed", range(20))
    def test_invariants(self, seed):
        rng = random.Random(seed)
        reviews = random_reviews(rng, rng.randint(0, 30))
        s = spec(
            min_rating=rng.randint(1, 5),
            max_reviews=rng.choice(["all", 1, 3, 10]),
            sort_by=rng.choice(["newest", "highest", "lowest"]),
            show_without_text=rng.random() < 0.5,
        )
        result = select_reviews(reviews, s)

        limit = len(reviews) if s.max_reviews == "all" else s.max_reviews
        assert len(result) <= limit

        for review in result:
            assert review.rating >= s.min_rating
            assert s.show_without_text or (review.text and review.text.strip())

        pins = [r.pinned for r in result]
        assert pins == sorted(pins, reverse=True)

        # Equal keys keep input order
        position = {r.id: i for i, r in enumerate(reviews)}
        for first, second in zip(result, result[1:]):
            if first.pinned != second.pinned:
                continue
            if s.sort_by == "newest":
                tied = first.date == second.date
            else:
                tied = first.rating == second.rating
            if tied:
                assert position[first.id] < position[second.id]

    @pytest.mark.parametrize("seed", range(5))
    def test_deterministic(self, seed):
        rng = random.Random(seed)
        reviews = random_reviews(rng, 15)
        s = spec(sort_by="highest", show_without_text=True)
        assert ids(select_reviews(reviews, s)) == ids(select_reviews(list(reviews), s))
