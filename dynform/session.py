from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from dynform import config
from dynform.errors import FieldAnomaly, UnknownWidgetError
from dynform.factory import BuildContext
from dynform.loader import load_layout_text
from dynform.pages import build_page
from dynform.registry import MandatoryRegistry
from dynform.schema import LayoutSchema, parse_layout
from dynform.validators import ValidationReport, validate_page
from dynform.widgets import Page, Widget

log = logging.getLogger(__name__)


class FormSession:
    """One layout build: the parsed schema, its page trees and their registry.

    Reloading a layout means creating a new session; widgets of an old
    session are unknown to the registry of a new one.
    """

    def __init__(self, layout: LayoutSchema, pages: List[Page], ctx: BuildContext):
        self.session_id = uuid.uuid4().hex
        self.layout = layout
        self.pages = pages
        self.ctx = ctx
        # Held across apply-then-validate; host requests run on worker threads
        self.lock = threading.RLock()

    @classmethod
    def from_source(cls, raw: Union[str, bytes, Dict[str, Any], None]) -> "FormSession":
        layout = parse_layout(raw)
        ctx = BuildContext()
        pages = [build_page(spec, ctx) for spec in layout.pages]
        log.info(
            "session.build: pages=%d mandatory=%d anomalies=%d",
            len(pages),
            len(ctx.registry),
            len(ctx.anomalies),
        )
        return cls(layout, pages, ctx)

    @property
    def registry(self) -> MandatoryRegistry:
        return self.ctx.registry

    @property
    def anomalies(self) -> List[FieldAnomaly]:
        return self.ctx.anomalies

    def page(self, index: int) -> Page:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"page index {index} out of range")
        return self.pages[index]

    def apply_values(self, index: int, values: Mapping[str, Any]) -> None:
        """Push user edits, keyed by widget id, into the widgets of one page.

        Every id is resolved and every value coerced before any widget is
        touched, so a rejected request leaves the page as it was.
        """
        with self.lock:
            page = self.page(index)
            staged: List[Tuple[Widget, Any]] = []
            for widget_id, value in values.items():
                widget = page.find(widget_id)
                if widget is None:
                    raise UnknownWidgetError(widget_id)
                staged.append((widget, widget.coerce(value)))
            for widget, value in staged:
                widget.assign(value)

    def validate(self, index: int) -> ValidationReport:
        with self.lock:
            return validate_page(self.page(index), self.registry)

    def submit(self, index: int, values: Mapping[str, Any]) -> ValidationReport:
        """Apply edits and validate the page as one step no other request can interleave with."""
        with self.lock:
            self.apply_values(index, values)
            return self.validate(index)

    def describe(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "session_id": self.session_id,
                "titles": [p.title for p in self.pages],
                "pages": [p.to_dict() for p in self.pages],
                "anomalies": [a.to_dict() for a in self.anomalies],
            }


def load_session(path: Optional[Union[str, Path]] = None) -> FormSession:
    source = path if path is not None else config.layout_path()
    return FormSession.from_source(load_layout_text(source))
