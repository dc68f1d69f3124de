"""Runtime widget descriptors.

A built layout is a tree of these objects. The host renders them (see
``dynform.render``) and pushes user edits back through ``set_value``.
Widgets are compared by identity: two widgets built from the same field
spec are still different widgets, each with its own ``widget_id``.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d.%m.%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y")


def _new_id() -> str:
    return f"w-{uuid.uuid4().hex[:12]}"


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a date the way form producers write them; None when it is not a date."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


class Widget:
    kind = "widget"
    # Interactive widgets are the ones the tree walker yields
    interactive = False

    def __init__(self, automation_id: str = ""):
        self.widget_id = _new_id()
        self.automation_id = automation_id

    def children(self) -> Sequence["Widget"]:
        return ()

    def get_value(self) -> Any:
        return None

    def coerce(self, value: Any) -> Any:
        """Turn a submitted value into what ``assign`` stores, without touching the widget.

        Raises TypeError for widgets that hold no value and ValueError for
        values the widget cannot take.
        """
        raise TypeError(f"{self.kind} widgets do not hold a value")

    def assign(self, value: Any) -> None:
        raise TypeError(f"{self.kind} widgets do not hold a value")

    def set_value(self, value: Any) -> None:
        self.assign(self.coerce(value))

    def props(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Describe this widget and its subtree as plain dicts, at any depth."""
        result: List[Dict[str, Any]] = []
        pending: List[Tuple[Widget, List[Dict[str, Any]]]] = [(self, result)]
        while pending:
            node, siblings = pending.pop()
            out: Dict[str, Any] = {"id": node.widget_id, "type": node.kind}
            if node.automation_id:
                out["automation_id"] = node.automation_id
            out["props"] = node.props()
            siblings.append(out)
            kids = node.children()
            if kids:
                out["children"] = []
                for kid in reversed(kids):
                    pending.append((kid, out["children"]))
        return result[0]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.widget_id}>"


class Label(Widget):
    kind = "label"

    def __init__(self, text: str = "", bold: bool = False, italic: bool = False, automation_id: str = ""):
        super().__init__(automation_id)
        self.text = text
        self.bold = bold
        self.italic = italic

    def props(self) -> Dict[str, Any]:
        return {"text": self.text, "bold": self.bold, "italic": self.italic}


class TextEntry(Widget):
    kind = "entry"
    interactive = True

    def __init__(
        self,
        text: Optional[str] = None,
        placeholder: str = "",
        multiline: bool = False,
        height_request: Optional[int] = None,
        automation_id: str = "",
    ):
        super().__init__(automation_id)
        self.text = text
        self.placeholder = placeholder
        self.multiline = multiline
        self.height_request = height_request

    def get_value(self) -> Optional[str]:
        return self.text

    def coerce(self, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    def assign(self, value: Optional[str]) -> None:
        self.text = value

    def props(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "placeholder": self.placeholder,
            "multiline": self.multiline,
            "height_request": self.height_request,
        }


class CheckBox(Widget):
    kind = "checkbox"
    interactive = True

    def __init__(self, is_checked: bool = False, automation_id: str = ""):
        super().__init__(automation_id)
        self.is_checked = is_checked

    def get_value(self) -> bool:
        return self.is_checked

    def coerce(self, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    def assign(self, value: bool) -> None:
        self.is_checked = value

    def props(self) -> Dict[str, Any]:
        return {"is_checked": self.is_checked}


class Picker(Widget):
    kind = "picker"
    interactive = True

    def __init__(self, title: str = "", items: Optional[List[str]] = None, automation_id: str = ""):
        super().__init__(automation_id)
        self.title = title
        self.items: List[str] = list(items or [])
        self.selected_index = -1

    @property
    def selected_item(self) -> Optional[str]:
        if 0 <= self.selected_index < len(self.items):
            return self.items[self.selected_index]
        return None

    def select(self, item: Optional[str]) -> bool:
        """Select ``item`` if it is one of the options; returns whether it was."""
        if item is not None and item in self.items:
            self.selected_index = self.items.index(item)
            return True
        return False

    def get_value(self) -> Optional[str]:
        return self.selected_item

    def coerce(self, value: Any) -> int:
        """Map a submitted option (text, index, or None/"" for no selection) to an index."""
        if value is None or value == "":
            return -1
        if isinstance(value, int) and not isinstance(value, bool):
            if not -1 <= value < len(self.items):
                raise ValueError(f"option index {value} out of range")
            return value
        if str(value) not in self.items:
            raise ValueError(f"{value!r} is not one of the options")
        return self.items.index(str(value))

    def assign(self, value: int) -> None:
        self.selected_index = value

    def props(self) -> Dict[str, Any]:
        return {"title": self.title, "items": list(self.items), "selected_index": self.selected_index}


class DatePicker(Widget):
    kind = "datepicker"
    interactive = True

    def __init__(self, value: Optional[date] = None, automation_id: str = ""):
        super().__init__(automation_id)
        self.date = value or date.today()

    def get_value(self) -> date:
        return self.date

    def coerce(self, value: Any) -> date:
        if isinstance(value, date):
            return value
        parsed = parse_date(None if value is None else str(value))
        if parsed is None:
            raise ValueError(f"{value!r} is not a date")
        return parsed

    def assign(self, value: date) -> None:
        self.date = value

    def props(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat()}


class Button(Widget):
    kind = "button"
    interactive = True

    def __init__(self, text: str = "", action: Optional[str] = None, automation_id: str = ""):
        super().__init__(automation_id)
        self.text = text
        # Name of the host action this trigger fires; None for placeholders
        self.action = action

    def props(self) -> Dict[str, Any]:
        return {"text": self.text, "action": self.action}


class RadioButton(Widget):
    kind = "radio"

    def __init__(self, content: str = "", group_name: str = "", automation_id: str = ""):
        super().__init__(automation_id)
        self.content = content
        self.group_name = group_name
        self.is_checked = False

    def get_value(self) -> bool:
        return self.is_checked

    def coerce(self, value: Any) -> bool:
        return bool(value)

    def assign(self, value: bool) -> None:
        self.is_checked = value

    def props(self) -> Dict[str, Any]:
        return {"content": self.content, "group_name": self.group_name, "is_checked": self.is_checked}


class Stack(Widget):
    kind = "stack"

    def __init__(self, spacing: int = 0, padding: int = 0, margin: Optional[Sequence[int]] = None):
        super().__init__()
        self.spacing = spacing
        self.padding = padding
        self.margin = tuple(margin) if margin else None
        self._children: List[Widget] = []

    def add(self, child: Widget) -> Widget:
        self._children.append(child)
        return child

    def remove(self, child: Widget) -> None:
        self._children.remove(child)

    def clear(self) -> None:
        self._children.clear()

    def children(self) -> Sequence[Widget]:
        return tuple(self._children)

    def props(self) -> Dict[str, Any]:
        return {"spacing": self.spacing, "padding": self.padding, "margin": list(self.margin) if self.margin else None}


class ScrollView(Widget):
    kind = "scroll"

    def __init__(self, content: Optional[Widget] = None):
        super().__init__()
        self.content = content

    def children(self) -> Sequence[Widget]:
        return (self.content,) if self.content is not None else ()


class Page(Widget):
    kind = "page"

    def __init__(self, title: str, content: Optional[Widget] = None):
        super().__init__()
        self.title = title
        self.content = content
        self.validate_button: Optional[Button] = None

    def children(self) -> Sequence[Widget]:
        return (self.content,) if self.content is not None else ()

    def find(self, widget_id: str) -> Optional[Widget]:
        stack: List[Widget] = [self]
        while stack:
            node = stack.pop()
            if node.widget_id == widget_id:
                return node
            stack.extend(node.children())
        return None

    def props(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "validate_button": self.validate_button.widget_id if self.validate_button else None,
        }
