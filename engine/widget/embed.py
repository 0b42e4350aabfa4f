"""
Widget Engine — Embed Helpers

What a third-party page needs to mount a widget: the one-line snippet,
the loader script it references, and the height message the frame posts
back.

The loader creates an iframe pointing at /w/{id} and resizes it from
"rc-widget-height" messages, accepting them only from the widget origin.
"""

from __future__ import annotations

import json
import math
from html import escape
from typing import Any

from engine.widget.renderer import HEIGHT_MESSAGE_TYPE

LOADER_PATH = "/widget-platform.js"


def height_message(height: float) -> dict[str, Any]:
    """The message the frame posts when its content height changes."""
    return {"type": HEIGHT_MESSAGE_TYPE, "height": int(math.ceil(height))}


def embed_snippet(
    widget_id: str,
    base_url: str,
    *,
    lazy: bool = False,
    container: str | None = None,
) -> str:
    """
    The script tag a site owner pastes into their page.

    Args:
        widget_id: Widget to mount
        base_url: Public origin serving the loader and the frame
        lazy: Defer loading until the widget scrolls into view
        container: CSS selector of an existing element to mount into

    Returns:
        A single <script> element
    """
    attrs = [
        f'src="{escape(base_url.rstrip("/") + LOADER_PATH)}"',
        f'data-widget-id="{escape(widget_id)}"',
    ]
    if lazy:
        attrs.append('data-lazy="true"')
    if container:
        attrs.append(f'data-container="{escape(container)}"')
    return f"<script {' '.join(attrs)} async></script>"


def loader_script(base_url: str) -> str:
    """Loader served at /widget-platform.js, bound to the widget origin."""
    origin = base_url.rstrip("/")
    return LOADER_JS.replace("__WIDGET_ORIGIN__", json.dumps(origin).replace("<", "\\u003c")).replace(
        "__HEIGHT_MESSAGE_TYPE__", json.dumps(HEIGHT_MESSAGE_TYPE)
    )


LOADER_JS = """\
(function () {
  "use strict";

  var WIDGET_ORIGIN = __WIDGET_ORIGIN__;
  var SCRIPT_TAG = document.currentScript;
  var widgetId = SCRIPT_TAG && SCRIPT_TAG.getAttribute("data-widget-id");
  var lazyLoad = SCRIPT_TAG && SCRIPT_TAG.getAttribute("data-lazy") === "true";
  var containerSelector = SCRIPT_TAG && SCRIPT_TAG.getAttribute("data-container");

  if (!widgetId) {
    console.error("[reviews] Missing data-widget-id attribute");
    return;
  }

  function createFrame(container) {
    var iframe = document.createElement("iframe");
    iframe.src = WIDGET_ORIGIN + "/w/" + encodeURIComponent(widgetId);
    iframe.id = "rc-widget-" + widgetId;
    iframe.className = "rc-widget-frame";
    iframe.title = "Customer reviews";
    iframe.scrolling = "no";
    iframe.loading = lazyLoad ? "lazy" : "eager";
    iframe.style.cssText = [
      "width: 100%",
      "border: none",
      "display: block",
      "overflow: hidden",
      "min-height: 200px",
      "transition: height 0.2s ease-out"
    ].join(";");
    container.appendChild(iframe);
    return iframe;
  }

  function listenForHeight(iframe) {
    window.addEventListener("message", function (event) {
      if (event.origin !== WIDGET_ORIGIN) return;
      if (event.source !== iframe.contentWindow) return;
      var data = event.data;
      if (data && data.type === __HEIGHT_MESSAGE_TYPE__ && typeof data.height === "number") {
        iframe.style.height = data.height + "px";
      }
    });
  }

  function getContainer() {
    if (containerSelector) {
      var el = document.querySelector(containerSelector);
      if (el) return el;
      console.warn("[reviews] Container not found:", containerSelector);
    }
    var container = document.createElement("div");
    container.className = "rc-widget-container";
    container.setAttribute("data-widget-id", widgetId);
    if (SCRIPT_TAG && SCRIPT_TAG.parentNode) {
      SCRIPT_TAG.parentNode.insertBefore(container, SCRIPT_TAG.nextSibling);
    } else {
      document.body.appendChild(container);
    }
    return container;
  }

  function mount(container) {
    listenForHeight(createFrame(container));
  }

  function mountLazily(container) {
    if (!("IntersectionObserver" in window)) {
      mount(container);
      return;
    }
    var placeholder = document.createElement("div");
    placeholder.className = "rc-widget-placeholder";
    placeholder.style.cssText = "min-height: 200px";
    container.appendChild(placeholder);
    var observer = new IntersectionObserver(function (entries) {
      entries.forEach(function (entry) {
        if (entry.isIntersecting) {
          observer.disconnect();
          container.removeChild(placeholder);
          mount(container);
        }
      });
    }, { rootMargin: "100px" });
    observer.observe(container);
  }

  function init() {
    var container = getContainer();
    if (lazyLoad) {
      mountLazily(container);
    } else {
      mount(container);
    }
  }

  if (document.readyState === "loading") {
    document.addEventListener("DOMContentLoaded", init);
  } else {
    init();
  }
})();
"""
