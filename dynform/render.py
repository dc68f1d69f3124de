from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup

from dynform import config
from dynform.widgets import Page, Widget


@lru_cache(maxsize=4)
def _env(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        enable_async=False,
    )


def _template_for(env: Environment, widget: Widget) -> Template:
    try:
        return env.get_template(f"partials/{widget.kind}.html")
    except TemplateNotFound:
        return env.get_template("partials/generic.html")


def _render_widget(env: Environment, root: Widget) -> Markup:
    """
    Map each widget to partials/<kind>.html, children first.
    Kinds without a partial fall back to a generic box.
    The tree is listed parents-first, then rendered in reverse,
    so depth never touches the Python stack.
    """
    # Each entry: [widget, indices of its children in ``order``]
    order: List[List[Any]] = []
    pending: List[Tuple[Widget, Optional[int]]] = [(root, None)]
    while pending:
        widget, parent = pending.pop()
        index = len(order)
        order.append([widget, []])
        if parent is not None:
            order[parent][1].append(index)
        for child in reversed(widget.children()):
            pending.append((child, index))

    html: List[Optional[Markup]] = [None] * len(order)
    for index in range(len(order) - 1, -1, -1):
        widget, child_indices = order[index]
        children = [html[i] for i in child_indices]
        tpl = _template_for(env, widget)
        html[index] = Markup(tpl.render(w=widget, props=widget.props(), children=children))
        for i in child_indices:
            html[i] = None
    return html[0]


def render_page_html(page: Page) -> str:
    """Render a built page tree as a standalone HTML document."""
    env = _env(config.templates_dir())
    body = _render_widget(env, page.content) if page.content is not None else Markup("")
    base = env.get_template("page.html")
    return base.render(page=page, body=body)
