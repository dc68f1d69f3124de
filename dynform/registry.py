from __future__ import annotations

from typing import Dict

from dynform.widgets import Widget


class MandatoryRegistry:
    """Widgets flagged mandatory during one layout build.

    Membership is by widget identity, never by field name. The registry also
    keeps the plain label text of every registered widget, written when the
    field is built, so validation never has to dig it out of the tree.
    There is no removal: reloading a layout means building a new registry.
    """

    def __init__(self) -> None:
        self._labels: Dict[str, str] = {}

    def register(self, widget: Widget, label: str) -> None:
        self._labels[widget.widget_id] = label

    def is_mandatory(self, widget: Widget) -> bool:
        return widget.widget_id in self._labels

    def label_of(self, widget: Widget) -> str:
        return self._labels.get(widget.widget_id, "")

    def __contains__(self, widget: object) -> bool:
        return isinstance(widget, Widget) and self.is_mandatory(widget)

    def __len__(self) -> int:
        return len(self._labels)
