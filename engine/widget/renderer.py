"""
Widget Engine — Renderer

Pure function: (config, reviews, summary?, options?) → HTML string
No IO. Deterministic: same input → same output, always.

Two entry points:
- render()         full document served inside the embed frame (/w/{id})
- render_widget()  the widget root alone, for the builder's live preview

The renderer runs the review selection itself, so callers may hand it the
raw review list. Inside the frame it reports its own height to the hosting
page with {type: "rc-widget-height", height} messages.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable
from html import escape as _html_escape
from typing import Any

import chevron

from engine.widget.config import (
    SLIDING_LAYOUTS,
    CarouselLayout,
    ElementStyle,
    GridLayout,
    SourceLocation,
    WidgetConfig,
    parse_config,
)
from engine.widget.errors import RenderPreconditionError
from engine.widget.selection import select_reviews
from engine.widget.types import RenderOptions, Review, Summary

HEIGHT_MESSAGE_TYPE = "rc-widget-height"
ROOT_ID = "rc-widget-root"

# Per-view count used for "auto" columns on wide screens
AUTO_PER_VIEW = 3

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render(
    config: WidgetConfig,
    reviews: Iterable[Review],
    summary: Summary | None = None,
    options: RenderOptions | None = None,
) -> str:
    """
    Render the complete embed document.
    Returns a UTF-8 HTML string.
    Pure function. No side effects. No IO.
    """
    opts = options or RenderOptions()
    config = _ensure_config(config, opts)

    parts: list[str] = []
    parts.append("<!DOCTYPE html>")
    parts.append(f'<html lang="{escape(config.settings.language)}">')
    parts.append("<head>")
    parts.append('  <meta charset="utf-8">')
    parts.append('  <meta name="viewport" content="width=device-width, initial-scale=1">')
    parts.append('  <meta name="robots" content="noindex, nofollow">')
    parts.append("  <title>Reviews Widget</title>")
    parts.append("  <style>")
    parts.append(BASE_CSS)
    parts.append("  </style>")
    parts.append("</head>")
    parts.append("<body>")
    parts.append(render_widget(config, reviews, summary, opts))

    if opts.include_scripts:
        if config.layout.type in SLIDING_LAYOUTS:
            parts.append(f"<script>{CAROUSEL_JS}</script>")
        parts.append(f"<script>{height_reporter_js(opts.parent_origin)}</script>")

    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts)


def render_widget(
    config: WidgetConfig,
    reviews: Iterable[Review],
    summary: Summary | None = None,
    options: RenderOptions | None = None,
) -> str:
    """
    Render the widget root element (theme, header, reviews, custom CSS,
    structured data). Used directly by the builder preview.
    """
    opts = options or RenderOptions()
    config = _ensure_config(config, opts)
    selected = select_reviews(reviews, config.reviews)

    parts: list[str] = []
    parts.append(
        f'<div id="{ROOT_ID}" class="rc-widget rc-scheme-{config.style.color_scheme} '
        f'rc-layout-{config.layout.type}" style="{_root_style(config)}">'
    )
    parts.append(f"<style>{_theme_css(config)}</style>")

    if config.header.enabled:
        parts.append(_render_header(config, summary, opts))

    if config.layout.type == "badge":
        parts.append(_render_badge(config, summary))
    elif not selected:
        parts.append('<div class="rc-empty"><p>No reviews to display</p></div>')
    elif isinstance(config.layout, CarouselLayout):
        parts.append(_render_carousel(config, config.layout, selected))
    else:
        parts.append(_render_tiles(config, config.layout, selected))

    if opts.footer:
        parts.append(_render_footer(opts))

    if config.style.custom_css:
        parts.append(f'<style id="rc-custom-css">{_guard_style(config.style.custom_css)}</style>')

    if config.settings.structured_data.enabled and summary is not None:
        parts.append(
            '<script type="application/ld+json">'
            f"{_json_for_script(structured_data(summary))}"
            "</script>"
        )

    parts.append("</div>")
    return "\n".join(parts)


def render_unavailable(options: RenderOptions | None = None) -> str:
    """
    Neutral document for a widget that is missing or not published.
    Still reports its height so the hosting page can collapse the frame.
    """
    opts = options or RenderOptions()
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="utf-8">',
        '  <meta name="robots" content="noindex, nofollow">',
        "  <title>Reviews Widget</title>",
        "  <style>",
        BASE_CSS,
        "  </style>",
        "</head>",
        "<body>",
        f'<div id="{ROOT_ID}" class="rc-widget rc-unavailable">',
        '  <p class="rc-empty">Widget not found or not published</p>',
        "</div>",
    ]
    if opts.include_scripts:
        parts.append(f"<script>{height_reporter_js(opts.parent_origin)}</script>")
    parts.extend(["</body>", "</html>"])
    return "\n".join(parts)


def structured_data(summary: Summary) -> dict[str, Any]:
    """schema.org AggregateRating for a widget summary."""
    return {
        "@context": "https://schema.org",
        "@type": "AggregateRating",
        "ratingValue": f"{summary.avg_rating:.1f}",
        "reviewCount": summary.total_reviews,
        "bestRating": 5,
        "worstRating": 1,
    }


def height_reporter_js(parent_origin: str = "*") -> str:
    """
    Inline script that posts the root's height to the parent frame on
    mount and on every ResizeObserver notification.
    """
    return (
        "(function () {\n"
        f'  var root = document.getElementById("{ROOT_ID}");\n'
        "  if (!root || window.parent === window) return;\n"
        f"  var origin = {_json_for_script(parent_origin)};\n"
        "  function post() {\n"
        "    window.parent.postMessage(\n"
        f"      {{type: {_json_for_script(HEIGHT_MESSAGE_TYPE)}, height: Math.ceil(root.scrollHeight)}},\n"
        "      origin\n"
        "    );\n"
        "  }\n"
        "  post();\n"
        '  if (typeof ResizeObserver !== "undefined") {\n'
        "    new ResizeObserver(post).observe(root);\n"
        "  }\n"
        "})();"
    )


def write_review_url(location: SourceLocation) -> str | None:
    """Provider page where a customer can leave a review, if known."""
    if location.provider == "google" and location.place_id:
        return f"https://search.google.com/local/writereview?placeid={location.place_id}"
    return None


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

BASE_CSS = """
*, *::before, *::after { box-sizing: border-box; }
html, body { margin: 0; padding: 0; background: transparent; }
.rc-widget {
  font-family: var(--rc-font);
  background: var(--rc-bg);
  color: var(--rc-text);
  line-height: 1.5;
  padding: 16px;
  max-width: 100%;
}
.rc-header { text-align: center; margin-bottom: 24px; }
.rc-title { font-size: 1.5rem; font-weight: 700; margin: 0 0 8px; }
.rc-summary { display: flex; align-items: center; justify-content: center; gap: 8px; margin-bottom: 8px; }
.rc-rating-value { font-weight: 600; }
.rc-review-count { color: var(--rc-muted); }
.rc-cta {
  display: inline-block;
  padding: 8px 16px;
  border-radius: 8px;
  background: var(--rc-accent);
  color: #fff;
  font-weight: 500;
  text-decoration: none;
}
.rc-cta:hover { opacity: 0.9; }
.rc-stars { display: inline-flex; gap: 2px; }
.rc-star { color: var(--rc-star-empty); }
.rc-star-filled { color: var(--rc-star-filled); }
.rc-review-card {
  display: block;
  padding: 16px;
  border-radius: 8px;
  border: 1px solid var(--rc-border);
  background: var(--rc-card-bg);
  color: inherit;
  text-decoration: none;
}
a.rc-review-card { cursor: pointer; }
a.rc-review-card:hover { box-shadow: 0 4px 12px rgba(0,0,0,0.12); }
.rc-review-card.rc-pinned {
  border-color: var(--rc-accent);
  box-shadow: 0 0 0 2px var(--rc-accent);
}
.rc-review-head { display: flex; align-items: flex-start; gap: 12px; margin-bottom: 8px; }
.rc-avatar {
  width: 40px; height: 40px; border-radius: 50%;
  flex-shrink: 0; object-fit: cover;
  display: inline-flex; align-items: center; justify-content: center;
  background: var(--rc-accent); color: #fff; font-weight: 600;
}
.rc-review-meta { display: flex; flex-direction: column; min-width: 0; }
.rc-author { font-weight: 500; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
.rc-date { font-size: 0.875rem; color: var(--rc-muted); }
.rc-review-text { font-size: 0.875rem; margin: 8px 0 0; color: var(--rc-text-soft); }
.rc-featured {
  display: inline-block; margin-top: 8px; padding: 2px 8px; border-radius: 4px;
  font-size: 0.75rem; font-weight: 500;
  color: var(--rc-accent); border: 1px solid var(--rc-accent);
}
.rc-empty { text-align: center; padding: 48px 0; color: var(--rc-muted); }
.rc-reviews-grid { display: grid; gap: var(--rc-spacing); }
.rc-reviews-list { display: flex; flex-direction: column; gap: var(--rc-spacing); }
.rc-reviews-masonry { column-gap: var(--rc-spacing); }
.rc-reviews-masonry .rc-review-card { break-inside: avoid; margin-bottom: var(--rc-spacing); }
.rc-carousel { position: relative; display: flex; align-items: center; gap: 8px; }
.rc-viewport { overflow: hidden; flex: 1; }
.rc-track { display: flex; transition: transform 0.4s ease; }
.rc-animation-fade .rc-track { transition: opacity 0.4s ease; }
.rc-slide { flex: 0 0 calc(100% / var(--rc-per-view)); padding: 0 calc(var(--rc-spacing) / 2); }
.rc-arrow {
  width: 32px; height: 32px; border-radius: 50%;
  border: 1px solid var(--rc-border); background: var(--rc-card-bg); color: var(--rc-text);
  cursor: pointer; font-size: 1.25rem; line-height: 1;
}
.rc-dots { display: flex; justify-content: center; gap: 6px; margin-top: 12px; }
.rc-dot { width: 8px; height: 8px; border-radius: 50%; border: 0; padding: 0; background: var(--rc-border); cursor: pointer; }
.rc-dot-active { background: var(--rc-accent); }
.rc-badge {
  display: flex; align-items: center; justify-content: center; gap: 8px;
  padding: 12px 16px; border-radius: 8px;
  border: 1px solid var(--rc-border); background: var(--rc-card-bg);
}
.rc-badge-value { font-size: 1.5rem; font-weight: 700; }
.rc-footer { margin-top: 24px; text-align: center; font-size: 0.75rem; color: var(--rc-muted); }
.rc-footer a { color: inherit; }
@media (max-width: 640px) {
  .rc-reviews-grid { grid-template-columns: 1fr !important; }
  .rc-reviews-masonry { column-count: 1 !important; }
  .rc-slide { flex-basis: 100%; }
}
"""

PALETTES: dict[str, dict[str, str]] = {
    "light": {
        "bg": "#ffffff",
        "text": "#111827",
        "text-soft": "#4b5563",
        "muted": "#6b7280",
        "card-bg": "#ffffff",
        "border": "#e5e7eb",
    },
    "dark": {
        "bg": "#111827",
        "text": "#ffffff",
        "text-soft": "#d1d5db",
        "muted": "#9ca3af",
        "card-bg": "#1f2937",
        "border": "#374151",
    },
}

DEFAULT_FONT = "system-ui, -apple-system, 'Segoe UI', Roboto, sans-serif"

# Values from the config end up inside CSS declarations
_CSS_VALUE_RE = re.compile(r"^[#a-zA-Z0-9(),.%\s'\"-]+$")


def _css_value(value: str | None, fallback: str) -> str:
    if value and _CSS_VALUE_RE.match(value):
        return value.strip()
    return fallback


def _root_style(config: WidgetConfig) -> str:
    width = config.layout.width
    if width == "responsive":
        return "width: 100%; max-width: 100%;"
    return f"width: {width}px; max-width: 100%;"


def _theme_css(config: WidgetConfig) -> str:
    style = config.style
    palette = PALETTES[style.color_scheme]
    declarations = [f"--rc-{name}: {value};" for name, value in palette.items()]
    declarations.append(f"--rc-accent: {_css_value(style.accent_color, '#ee5f64')};")
    declarations.append(f"--rc-font: {_css_value(style.font_family, DEFAULT_FONT)};")
    declarations.append(f"--rc-star-filled: {_css_value(style.elements.stars.filled_color, '#fbbf24')};")
    declarations.append(f"--rc-star-empty: {_css_value(style.elements.stars.empty_color, '#e5e7eb')};")
    declarations.append(f"--rc-spacing: {config.layout.item_spacing}px;")
    if isinstance(config.layout, (CarouselLayout, GridLayout)):
        declarations.append(f"--rc-per-view: {_per_view(config.layout)};")

    rules = [f"#{ROOT_ID} {{ {' '.join(declarations)} }}"]

    elements = style.elements
    for selector, element in (
        (f"#{ROOT_ID}", elements.background),
        (f"#{ROOT_ID} .rc-review-card", elements.card),
        (f"#{ROOT_ID} .rc-title", elements.title),
        (f"#{ROOT_ID} .rc-cta", elements.button),
    ):
        body = _element_css(element)
        if body:
            rules.append(f"{selector} {{ {body} }}")

    links = []
    if elements.links.color:
        links.append(f"#{ROOT_ID} a:not(.rc-cta):not(.rc-review-card) {{ color: {_css_value(elements.links.color, 'inherit')}; }}")
    if elements.links.hover_color:
        links.append(
            f"#{ROOT_ID} a:not(.rc-cta):not(.rc-review-card):hover "
            f"{{ color: {_css_value(elements.links.hover_color, 'inherit')}; }}"
        )
    rules.extend(links)

    return "\n".join(rules)


def _element_css(element: ElementStyle) -> str:
    declarations = []
    if element.background_color:
        declarations.append(f"background: {_css_value(element.background_color, 'inherit')};")
    if element.text_color:
        declarations.append(f"color: {_css_value(element.text_color, 'inherit')};")
    if element.border_radius is not None:
        declarations.append(f"border-radius: {element.border_radius}px;")
    if element.border_color:
        declarations.append(f"border-color: {_css_value(element.border_color, 'inherit')};")
    if element.border_width is not None:
        declarations.append(f"border-width: {element.border_width}px; border-style: solid;")
    return " ".join(declarations)


def _guard_style(css: str) -> str:
    """Keep custom CSS from closing its own <style> element."""
    return re.sub(r"</(style)", r"<\\/\1", css, flags=re.IGNORECASE)


# ---------------------------------------------------------------------------
# Header / badge / footer
# ---------------------------------------------------------------------------


def _render_header(config: WidgetConfig, summary: Summary | None, opts: RenderOptions) -> str:
    header = config.header
    parts = ['<header class="rc-header">']

    if header.title:
        parts.append(f'  <h2 class="rc-title">{escape(header.title)}</h2>')

    # The badge body carries the rating itself
    if summary is not None and config.layout.type != "badge":
        line = []
        if header.show_rating_summary:
            line.append(f'<span class="rc-rating-value">{format_rating(summary.avg_rating, config)}</span>')
            line.append(stars_html(_round_half_up(summary.avg_rating)))
        if header.show_review_count:
            line.append(f'<span class="rc-review-count">based on {summary.total_reviews} reviews</span>')
        if line:
            parts.append(f'  <div class="rc-summary">{"".join(line)}</div>')

    button = header.write_review_button
    if button.enabled:
        href = _cta_url(config, opts)
        target = "_blank" if config.settings.external_links.open_in_new_tab else "_self"
        parts.append(
            f'  <a class="rc-cta" href="{escape(href)}" target="{target}" rel="noopener noreferrer">'
            f"{escape(button.text)}</a>"
        )

    parts.append("</header>")
    return "\n".join(parts)


def _cta_url(config: WidgetConfig, opts: RenderOptions) -> str:
    explicit = _safe_url(config.header.write_review_button.url)
    if explicit:
        return explicit
    fallback = _safe_url(opts.fallback_review_url)
    if fallback:
        return fallback
    for location in config.source:
        if location.enabled:
            url = write_review_url(location)
            if url:
                return url
    return "#"


def _render_badge(config: WidgetConfig, summary: Summary | None) -> str:
    if summary is None:
        return '<div class="rc-badge"><span class="rc-review-count">No reviews yet</span></div>'
    return (
        '<div class="rc-badge">'
        f'<span class="rc-badge-value">{format_rating(summary.avg_rating, config)}</span>'
        f"{stars_html(_round_half_up(summary.avg_rating))}"
        f'<span class="rc-review-count">{summary.total_reviews} reviews</span>'
        "</div>"
    )


def _render_footer(opts: RenderOptions) -> str:
    text = escape(opts.footer or "")
    url = _safe_url(opts.footer_url)
    if url:
        text = f'<a href="{escape(url)}" target="_blank" rel="noopener noreferrer">{text}</a>'
    return f'<footer class="rc-footer">{text}</footer>'


# ---------------------------------------------------------------------------
# Review layouts
# ---------------------------------------------------------------------------


def _per_view(layout: CarouselLayout | GridLayout) -> int:
    if layout.type == "slider":
        return 1
    if layout.columns == "auto":
        return AUTO_PER_VIEW
    return layout.columns


def _render_carousel(config: WidgetConfig, layout: CarouselLayout, reviews: list[Review]) -> str:
    per_view = _per_view(layout)
    attrs = [
        f'data-per-view="{per_view}"',
        f'data-scroll-mode="{layout.scroll_mode}"',
        f'data-swipe="{_bool_attr(layout.navigation.swipe)}"',
    ]
    if layout.autoplay.enabled:
        attrs.append('data-autoplay="true"')
        attrs.append(f'data-interval="{layout.autoplay.interval}"')
        attrs.append(f'data-pause-on-hover="{_bool_attr(layout.autoplay.pause_on_hover)}"')

    parts = [f'<div class="rc-carousel rc-animation-{layout.animation}" {" ".join(attrs)}>']
    if layout.navigation.arrows:
        parts.append('  <button type="button" class="rc-arrow rc-arrow-prev" aria-label="Previous reviews">&lsaquo;</button>')
    parts.append('  <div class="rc-viewport"><div class="rc-track">')
    for index, review in enumerate(reviews):
        parts.append(f'    <div class="rc-slide" data-index="{index}">{render_review_card(review, config)}</div>')
    parts.append("  </div></div>")
    if layout.navigation.arrows:
        parts.append('  <button type="button" class="rc-arrow rc-arrow-next" aria-label="Next reviews">&rsaquo;</button>')
    parts.append("</div>")

    if layout.navigation.dots:
        parts.append(_render_dots(len(reviews), per_view, layout.scroll_mode))

    return "\n".join(parts)


def _render_dots(count: int, per_view: int, scroll_mode: str) -> str:
    if scroll_mode == "page":
        # A partial last page starts at the last full view, the furthest the track can move
        last = max(count - per_view, 0)
        targets = sorted({min(start, last) for start in range(0, count, per_view)})
    else:
        targets = list(range(count))
    dots = []
    for number, target in enumerate(targets):
        active = " rc-dot-active" if target == 0 else ""
        dots.append(
            f'<button type="button" class="rc-dot{active}" data-target="{target}" '
            f'aria-label="Go to slide {number + 1}"></button>'
        )
    return f'<div class="rc-dots">{"".join(dots)}</div>'


def _render_tiles(config: WidgetConfig, layout: GridLayout, reviews: list[Review]) -> str:
    cards = "\n".join(render_review_card(r, config) for r in reviews)

    if layout.type == "list":
        return f'<div class="rc-reviews-list">\n{cards}\n</div>'

    if layout.type == "masonry":
        columns = AUTO_PER_VIEW if layout.columns == "auto" else layout.columns
        return f'<div class="rc-reviews-masonry" style="column-count: {columns};">\n{cards}\n</div>'

    if layout.columns == "auto":
        template = "repeat(auto-fit, minmax(280px, 1fr))"
    else:
        template = f"repeat({layout.columns}, minmax(0, 1fr))"
    return f'<div class="rc-reviews-grid" style="grid-template-columns: {template};">\n{cards}\n</div>'


# ---------------------------------------------------------------------------
# Review card (Mustache)
# ---------------------------------------------------------------------------

REVIEW_CARD_TEMPLATE = """\
{{{open_tag}}}
  <div class="rc-review-head">
    {{#has_avatar}}<img class="rc-avatar" src="{{avatar_url}}" alt="{{author}}" loading="lazy">{{/has_avatar}}\
{{^has_avatar}}<span class="rc-avatar">{{initial}}</span>{{/has_avatar}}
    <div class="rc-review-meta">
      <span class="rc-author">{{author}}</span>
      <time class="rc-date" datetime="{{iso_date}}">{{date}}</time>
    </div>
  </div>
  {{{stars}}}
  {{#has_text}}<p class="rc-review-text">{{text}}</p>{{/has_text}}
  {{#pinned}}<span class="rc-featured">Featured</span>{{/pinned}}
{{{close_tag}}}"""


def render_review_card(review: Review, config: WidgetConfig) -> str:
    """Render one review card. Linked to the review when external links are on."""
    links = config.settings.external_links
    classes = "rc-review-card rc-pinned" if review.pinned else "rc-review-card"
    url = _safe_url(review.review_url) if links.enabled else None

    if url:
        target = "_blank" if links.open_in_new_tab else "_self"
        open_tag = f'<a class="{classes}" href="{escape(url)}" target="{target}" rel="noopener noreferrer">'
        close_tag = "</a>"
    else:
        open_tag = f'<div class="{classes}">'
        close_tag = "</div>"

    avatar_url = _safe_url(review.author_avatar_url)
    text = review.display_text()

    context = {
        "open_tag": open_tag,
        "close_tag": close_tag,
        "has_avatar": bool(avatar_url),
        "avatar_url": avatar_url or "",
        "author": review.author_name,
        "initial": review.author_name[:1].upper(),
        "iso_date": review.date.date().isoformat(),
        "date": format_date(review),
        "stars": stars_html(review.rating),
        "has_text": bool(text),
        "text": text or "",
        "pinned": review.pinned,
    }
    return chevron.render(REVIEW_CARD_TEMPLATE, context)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def escape(text: Any) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


def stars_html(rating: int) -> str:
    filled = max(0, min(5, rating))
    stars = "".join(
        f'<span class="rc-star{" rc-star-filled" if i < filled else ""}">&#9733;</span>' for i in range(5)
    )
    return f'<span class="rc-stars" role="img" aria-label="{filled} out of 5 stars">{stars}</span>'


def format_rating(value: float, config: WidgetConfig) -> str:
    if config.settings.rating_format == "integer":
        return str(_round_half_up(value))
    return f"{value:.1f}"


def format_date(review: Review) -> str:
    """Short US-style date, e.g. "Jan 5, 2025"."""
    d = review.date
    return f"{d:%b} {d.day}, {d.year}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _bool_attr(value: bool) -> str:
    return "true" if value else "false"


def _safe_url(url: str | None) -> str | None:
    """Only http(s) URLs make it into href/src attributes."""
    if not url:
        return None
    url = url.strip()
    if url.lower().startswith(("https://", "http://")):
        return url
    return None


def _json_for_script(value: Any) -> str:
    """JSON that cannot terminate the surrounding <script> element."""
    return json.dumps(value, ensure_ascii=False).replace("<", "\\u003c")


def _ensure_config(config: Any, opts: RenderOptions) -> WidgetConfig:
    if isinstance(config, WidgetConfig):
        return config
    if opts.strict:
        raise RenderPreconditionError(
            f"render() needs a parsed WidgetConfig, got {type(config).__name__}"
        )
    return parse_config(config)


# ---------------------------------------------------------------------------
# Carousel controller
# ---------------------------------------------------------------------------

CAROUSEL_JS = """
(function () {
  document.querySelectorAll(".rc-carousel").forEach(function (el) {
    var track = el.querySelector(".rc-track");
    var count = track.children.length;
    var perView = parseInt(el.dataset.perView, 10) || 1;
    if (window.innerWidth < 640) perView = 1;
    var step = el.dataset.scrollMode === "page" ? perView : 1;
    var dots = el.parentNode.querySelectorAll(".rc-dot");
    var index = 0;
    function go(i) {
      var max = Math.max(count - perView, 0);
      if (i > max) {
        index = index >= max ? 0 : max;
      } else if (i < 0) {
        index = index <= 0 ? max : 0;
      } else {
        index = i;
      }
      track.style.transform = "translateX(" + (-100 * index / perView) + "%)";
      dots.forEach(function (d) {
        d.classList.toggle("rc-dot-active", parseInt(d.dataset.target, 10) === index);
      });
    }
    var prev = el.querySelector(".rc-arrow-prev");
    var next = el.querySelector(".rc-arrow-next");
    if (prev) prev.addEventListener("click", function () { go(index - step); });
    if (next) next.addEventListener("click", function () { go(index + step); });
    dots.forEach(function (d) {
      d.addEventListener("click", function () {
        go(Math.min(parseInt(d.dataset.target, 10), Math.max(count - perView, 0)));
      });
    });
    if (el.dataset.swipe === "true") {
      var startX = null;
      el.addEventListener("touchstart", function (e) { startX = e.touches[0].clientX; });
      el.addEventListener("touchend", function (e) {
        if (startX === null) return;
        var dx = e.changedTouches[0].clientX - startX;
        if (Math.abs(dx) > 40) go(dx < 0 ? index + step : index - step);
        startX = null;
      });
    }
    if (el.dataset.autoplay === "true") {
      var paused = false;
      if (el.dataset.pauseOnHover === "true") {
        el.addEventListener("mouseenter", function () { paused = true; });
        el.addEventListener("mouseleave", function () { paused = false; });
      }
      setInterval(function () { if (!paused) go(index + step); }, parseInt(el.dataset.interval, 10));
    }
  });
})();
"""
