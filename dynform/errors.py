from __future__ import annotations

from typing import Optional


class DynformError(Exception):
    """Base class for every error raised by dynform."""


class SchemaError(DynformError):
    """The layout source is unreadable or structurally malformed.

    Fatal for the whole layout build: no partial layout is produced.
    """

    def __init__(self, message: str, path: str = "(root)"):
        super().__init__(message)
        self.message = message
        self.path = path


class FieldAnomaly(DynformError):
    """A per-field problem that degrades gracefully.

    Anomalies are recorded on the build context and logged; they are never
    raised out of a layout build.
    """

    def __init__(self, message: str, field_label: str = ""):
        super().__init__(message)
        self.message = message
        self.field_label = field_label

    def to_dict(self) -> dict:
        return {
            "kind": type(self).__name__,
            "field": self.field_label,
            "message": self.message,
        }


class UnsupportedFieldKind(FieldAnomaly):
    def __init__(self, raw_type: Optional[str], field_label: str = ""):
        super().__init__(f"unsupported field type {raw_type!r}", field_label)
        self.raw_type = raw_type


class InvalidDefaultValue(FieldAnomaly):
    def __init__(self, value: str, expected: str, field_label: str = ""):
        super().__init__(f"default value {value!r} is not a valid {expected}", field_label)
        self.value = value
        self.expected = expected


class UnknownWidgetError(DynformError, KeyError):
    def __init__(self, widget_id: str):
        super().__init__(widget_id)
        self.widget_id = widget_id

    def __str__(self) -> str:
        return f"no widget with id {self.widget_id!r} on this page"
