from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, computed_field

from dynform.registry import MandatoryRegistry
from dynform.walker import flatten
from dynform.widgets import Button, CheckBox, DatePicker, Picker, TextEntry, Widget

log = logging.getLogger(__name__)

SUCCESS_TITLE = "Validation Successful"
SUCCESS_MESSAGE = "All mandatory fields on this page are filled."
FAILURE_TITLE = "Validation Failed"


class FailureReason(str, Enum):
    REQUIRED = "Required"


class FieldFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_label: str
    reason: FailureReason = FailureReason.REQUIRED

    @computed_field
    @property
    def message(self) -> str:
        return f"Field '{self.field_label}' is required."


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    all_valid: bool
    failures: Tuple[FieldFailure, ...] = ()

    @property
    def messages(self) -> List[str]:
        return [f.message for f in self.failures]


def _text_missing(widget: TextEntry) -> bool:
    return not (widget.text or "").strip()


def _nothing_selected(widget: Picker) -> bool:
    return widget.selected_index == -1


def _never_missing(widget: Widget) -> bool:
    # Dates and booleans always hold a value; triggers capture nothing yet
    return False


_EMPTINESS_RULES: Dict[type, Callable[..., bool]] = {
    TextEntry: _text_missing,
    Picker: _nothing_selected,
    DatePicker: _never_missing,
    CheckBox: _never_missing,
    Button: _never_missing,
}


def is_missing(widget: Widget) -> bool:
    for cls, rule in _EMPTINESS_RULES.items():
        if isinstance(widget, cls):
            return rule(widget)
    return False


def collect_failures(page_root: Widget, registry: MandatoryRegistry) -> List[FieldFailure]:
    """
    Return one FieldFailure per mandatory widget under ``page_root`` that has
    no value, in traversal order. Widgets the registry does not know are
    skipped, so a tree from another build session never fails here.
    """
    failures: List[FieldFailure] = []
    for widget in flatten(page_root):
        if not registry.is_mandatory(widget):
            continue
        if is_missing(widget):
            failures.append(FieldFailure(field_label=registry.label_of(widget)))
    return failures


def validate_page(page_root: Widget, registry: MandatoryRegistry) -> ValidationReport:
    failures = collect_failures(page_root, registry)
    if failures:
        log.info("validators.page: failed=%d labels=%s", len(failures), [f.field_label for f in failures])
    return ValidationReport(all_valid=not failures, failures=tuple(failures))


def alert_for(report: ValidationReport) -> Tuple[str, str]:
    """Title and body of the notification the host shows after validating a page."""
    if report.all_valid:
        return SUCCESS_TITLE, SUCCESS_MESSAGE
    return FAILURE_TITLE, "\n".join(report.messages)


def report_detail(report: ValidationReport) -> Dict[str, object]:
    title, message = alert_for(report)
    detail: Dict[str, object] = {"valid": report.all_valid}
    if not report.all_valid:
        detail["errors"] = [
            {"field": f.field_label, "reason": f.reason.value, "message": f.message} for f in report.failures
        ]
    detail["alert"] = {"title": title, "message": message}
    return detail
