"""
Builder Session -- New Widget, Publish and Editing Tests

  - new widgets start with a pending template choice and never autosave
    before confirm_template()
  - choosing a template replaces the whole draft
  - publish writes immediately; a never-saved draft is created published
    in exactly one call
  - update() validates and leaves the draft untouched on error
"""

import pytest

from engine.widget.builder import BuilderSession, SaveStatus
from engine.widget.config import SourceLocation, create_default_config, parse_config
from engine.widget.errors import ConfigValidationError, NotFoundError, PersistenceError, WidgetError
from engine.widget.types import Review

QUIESCENCE = 1.5


def new_session(gateway, scheduler):
    return BuilderSession.new(gateway, "co_1", scheduler=scheduler, quiescence=QUIESCENCE)


# ============================================================================
# New widget flow
# ============================================================================


class TestNewWidget:
    def test_starts_pending(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.state
        assert state.template_pending is True
        assert state.widget is None
        assert state.status is SaveStatus.UNSAVED
        assert state.name == "New Widget"

    @pytest.mark.asyncio
    async def test_no_autosave_while_pending(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        session.rename("Preview only")
        session.update("header", title="Hi")
        assert scheduler.pending == 0
        await scheduler.advance(QUIESCENCE * 2)
        assert gateway.writes() == []

    def test_choose_template_replaces_draft(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        session.update("header", title="Customized")
        state = session.choose_template("grid")
        assert state.config == create_default_config("grid")
        assert state.config.header.title == "What Our Customers Say"
        assert state.status is SaveStatus.UNSAVED

    def test_choose_unknown_template(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        with pytest.raises(ConfigValidationError):
            session.choose_template("hexagon")

    def test_badge_template_parses(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.choose_template("badge")
        assert parse_config(state.config.to_json()).layout.type == "badge"

    @pytest.mark.asyncio
    async def test_confirm_creates_immediately(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        session.choose_template("masonry")
        state = await session.confirm_template()

        assert gateway.writes() == [("create", None)]
        assert state.status is SaveStatus.SAVED
        assert state.template_pending is False
        record = state.widget
        assert record.status == "DRAFT"
        assert record.type == "MASONRY"
        assert record.company_id == "co_1"

    @pytest.mark.asyncio
    async def test_autosave_after_confirm_updates(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        session.choose_template("list")
        state = await session.confirm_template()

        session.rename("Reviews page")
        await scheduler.advance(QUIESCENCE)
        assert gateway.writes() == [("create", None), ("update", state.widget.id)]

    @pytest.mark.asyncio
    async def test_confirm_failure(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        gateway.failing = True
        with pytest.raises(PersistenceError):
            await session.confirm_template()
        assert session.status is SaveStatus.ERROR
        assert session.state.widget is None

        # Autosave takes over and creates once the gateway is back
        gateway.failing = False
        session.rename("Retry")
        await scheduler.advance(QUIESCENCE)
        assert session.status is SaveStatus.SAVED
        assert session.state.widget.name == "Retry"

    @pytest.mark.asyncio
    async def test_choose_template_after_create(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.confirm_template()
        with pytest.raises(WidgetError):
            session.choose_template("grid")


# ============================================================================
# Publish
# ============================================================================


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_never_saved_is_one_create(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        session.choose_template("carousel")
        record = await session.publish()

        assert gateway.writes() == [("create", None)]
        assert record.status == "PUBLISHED"
        assert record.published_at is not None
        assert session.status is SaveStatus.SAVED

    @pytest.mark.asyncio
    async def test_publish_carries_current_draft(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.confirm_template()
        gateway.calls.clear()

        session.rename("Launch")
        session.update("style", color_scheme="dark")
        record = await session.publish()

        assert gateway.writes() == [("update", record.id)]
        assert record.status == "PUBLISHED"
        assert record.name == "Launch"
        assert record.config_json["style"]["colorScheme"] == "dark"

    @pytest.mark.asyncio
    async def test_pending_autosave_becomes_noop(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.confirm_template()
        gateway.calls.clear()

        session.rename("Launch")
        await session.publish()
        await scheduler.advance(QUIESCENCE)

        assert len(gateway.writes()) == 1
        assert session.status is SaveStatus.SAVED

    @pytest.mark.asyncio
    async def test_publish_failure_raises(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.confirm_template()
        gateway.failing = True
        with pytest.raises(PersistenceError):
            await session.publish()
        assert session.status is SaveStatus.ERROR

    @pytest.mark.asyncio
    async def test_unpublish(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.publish()
        state = await session.unpublish()
        assert state.widget.status == "DRAFT"
        assert state.widget.published_at is not None

    @pytest.mark.asyncio
    async def test_unpublish_never_saved_is_noop(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        await session.unpublish()
        assert gateway.writes() == []


# ============================================================================
# Editing
# ============================================================================


class TestUpdate:
    def test_nested_merge(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("header", write_review_button={"text": "Rate us"})
        button = state.config.header.write_review_button
        assert button.text == "Rate us"
        assert button.enabled is True

    def test_switch_layout_uses_template(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("layout", type="grid")
        assert state.config.layout.type == "grid"
        assert state.config.layout.columns == 3
        assert state.config.widget_type() == "GRID"

    def test_switch_layout_with_changes(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("layout", type="grid", columns=2)
        assert state.config.layout.columns == 2

    def test_invalid_value_leaves_draft(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        before = session.state.config
        with pytest.raises(ConfigValidationError):
            session.update("reviews", min_rating=9)
        assert session.state.config == before

    def test_unknown_section(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        with pytest.raises(ConfigValidationError) as exc:
            session.update("sparkles", enabled=True)
        assert exc.value.path == "sparkles"

    def test_unknown_field(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        with pytest.raises(ConfigValidationError) as exc:
            session.update("header", titel="typo")
        assert exc.value.path == "header.titel"

    def test_stored_names_accepted(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("header", writeReviewButton={"text": "Rate us"})
        assert state.config.header.write_review_button.text == "Rate us"

    def test_schema_alias(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("settings", schema={"enabled": False})
        assert state.config.settings.structured_data.enabled is False

    def test_attribute_name_for_aliased_field(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update("settings", structured_data={"enabled": False})
        assert state.config.to_json()["settings"]["schema"]["enabled"] is False

    def test_unknown_nested_field(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        before = session.state.config
        with pytest.raises(ConfigValidationError) as exc:
            session.update("layout", autoplay={"bogus": 1})
        assert exc.value.path == "layout.autoplay.bogus"
        assert session.state.config == before

    def test_field_of_other_layout(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        with pytest.raises(ConfigValidationError):
            session.update("layout", type="grid", autoplay={"enabled": True})

    def test_unknown_layout_type(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        with pytest.raises(ConfigValidationError) as exc:
            session.update("layout", type="hexagon")
        assert exc.value.path == "layout.type"

    def test_source_locations(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.update(
            "source",
            locations=[{"place_id": "abc", "label": "Main"}, SourceLocation(place_id="def", provider="yelp")],
        )
        assert [loc.place_id for loc in state.config.source] == ["abc", "def"]
        assert state.config.source[1].provider == "yelp"

    def test_replace_config(self, gateway, scheduler):
        session = new_session(gateway, scheduler)
        state = session.replace_config({"layout": {"type": "list"}})
        assert state.config.layout.type == "list"


class TestOpenAndPreview:
    @pytest.mark.asyncio
    async def test_open_missing(self, gateway, scheduler):
        with pytest.raises(NotFoundError):
            await BuilderSession.open(gateway, "co_1", "missing", scheduler=scheduler)

    @pytest.mark.asyncio
    async def test_open_malformed_config(self, gateway, scheduler):
        record = await gateway.create_widget("co_1", "Bad", "CAROUSEL", {"layout": {"type": "hexagon"}})
        with pytest.raises(ConfigValidationError):
            await BuilderSession.open(gateway, "co_1", record.id, scheduler=scheduler)

    @pytest.mark.asyncio
    async def test_open_fills_defaults(self, gateway, scheduler):
        record = await gateway.create_widget("co_1", "Sparse", "GRID", {"layout": {"type": "grid"}})
        session = await BuilderSession.open(gateway, "co_1", record.id, scheduler=scheduler)
        assert session.state.config.layout.columns == 3
        assert session.status is SaveStatus.SAVED

    def test_preview_renders_draft(self, gateway, scheduler):
        from datetime import UTC, datetime

        session = new_session(gateway, scheduler)
        session.update("header", title="Live preview")
        review = Review(id="r1", author_name="Ann", rating=5, text="Lovely", date=datetime(2025, 2, 1, tzinfo=UTC))
        html = session.preview([review])
        assert "Live preview" in html
        assert "Lovely" in html
        assert "postMessage" not in html
