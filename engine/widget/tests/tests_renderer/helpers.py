"""Shared builders and assertions for renderer tests."""

import json
from datetime import UTC, datetime

from engine.widget.config import parse_config
from engine.widget.types import Review, Summary


def assert_contains(html, *fragments):
    for fragment in fragments:
        assert fragment in html, (
            f"Expected to find {fragment!r} in rendered HTML.\nGot (first 3000 chars):\n{html[:3000]}"
        )


def assert_not_contains(html, *fragments):
    for fragment in fragments:
        assert fragment not in html, f"Did NOT expect to find {fragment!r} in rendered HTML."


def assert_order(html, *fragments):
    positions = [html.index(f) for f in fragments]
    assert positions == sorted(positions), f"Expected {fragments!r} in this order."


def make_config(**sections):
    """Config from camelCase sections, e.g. make_config(layout={"type": "grid"})."""
    return parse_config(sections)


def make_review(id="r1", **kwargs):
    data = {
        "id": id,
        "author_name": "Alice Smith",
        "rating": 5,
        "text": "Wonderful experience",
        "date": datetime(2025, 1, 5, 10, 30, tzinfo=UTC),
    }
    data.update(kwargs)
    return Review(**data)


def make_reviews(count, **kwargs):
    return [make_review(f"r{i}", author_name=f"Author {i}", **kwargs) for i in range(count)]


def make_summary(avg=4.6, total=128):
    return Summary(avg_rating=avg, total_reviews=total)


def json_ld(html):
    start_tag = '<script type="application/ld+json">'
    start = html.index(start_tag) + len(start_tag)
    end = html.index("</script>", start)
    return json.loads(html[start:end])
