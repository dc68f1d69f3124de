from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from dynform.errors import FieldAnomaly, InvalidDefaultValue, UnsupportedFieldKind
from dynform.registry import MandatoryRegistry
from dynform.schema import (
    BaseField,
    CheckboxField,
    ContainerField,
    DatepickerField,
    DropdownField,
    FieldKind,
    GpsField,
    LabelField,
    MultilineField,
    PhotoField,
    RadioGroupField,
    TextboxField,
    UnknownField,
)
from dynform.widgets import (
    Button,
    CheckBox,
    DatePicker,
    Label,
    Picker,
    RadioButton,
    Stack,
    TextEntry,
    Widget,
    parse_date,
)

log = logging.getLogger(__name__)

REQUIRED_MARKER = " *"
PLACEHOLDER_OPTIONS = ("Option 1", "Option 2", "Option 3")
RADIO_PLACEHOLDER_OPTIONS = ("Option A", "Option B")
MULTILINE_HEIGHT = 100


@dataclass
class BuildContext:
    """State shared by every field built during one layout build."""

    registry: MandatoryRegistry = field(default_factory=MandatoryRegistry)
    anomalies: List[FieldAnomaly] = field(default_factory=list)

    def record(self, anomaly: FieldAnomaly) -> None:
        log.warning("factory.build: %s field=%r", anomaly.message, anomaly.field_label)
        self.anomalies.append(anomaly)


# A builder returns (primary control, replaces_auto_label). The primary control is
# what a mandatory field registers; None means the field has nothing to validate.
Built = Tuple[Optional[Widget], bool]


def _build_text(spec: BaseField, wrapper: Stack, ctx: BuildContext) -> Built:
    entry = TextEntry(
        text=spec.default_value,
        placeholder=f"Enter {spec.label}",
        automation_id=spec.identifier,
    )
    if spec.kind is FieldKind.MULTILINE:
        # Taller, still a single editable paragraph
        entry.multiline = True
        entry.height_request = MULTILINE_HEIGHT
    return entry, False


def _build_checkbox(spec: CheckboxField, wrapper: Stack, ctx: BuildContext) -> Built:
    checked = (spec.default_value or "").lower() == "true"
    return CheckBox(is_checked=checked, automation_id=spec.identifier), False


def _build_dropdown(spec: DropdownField, wrapper: Stack, ctx: BuildContext) -> Built:
    options = spec.options if spec.options is not None else PLACEHOLDER_OPTIONS
    picker = Picker(title=f"Select {spec.label}", items=list(options), automation_id=spec.identifier)
    if spec.default_value:
        picker.select(spec.default_value)
    return picker, False


def _build_datepicker(spec: DatepickerField, wrapper: Stack, ctx: BuildContext) -> Built:
    preset = parse_date(spec.default_value)
    if preset is None and spec.default_value and spec.default_value.strip():
        ctx.record(InvalidDefaultValue(spec.default_value, "date", spec.label))
    return DatePicker(value=preset, automation_id=spec.identifier), False


def _build_label(spec: LabelField, wrapper: Stack, ctx: BuildContext) -> Built:
    text = spec.default_value if spec.default_value is not None else spec.label
    wrapper.add(Label(text=text, automation_id=spec.identifier))
    return None, True


def _build_photo(spec: PhotoField, wrapper: Stack, ctx: BuildContext) -> Built:
    # Capture is not wired; the trigger is an extension point
    return Button(text=f"Add {spec.label}", automation_id=spec.identifier), False


def _build_gps(spec: GpsField, wrapper: Stack, ctx: BuildContext) -> Built:
    return Button(text=f"Get {spec.label}", automation_id=spec.identifier), False


def _build_container(spec: ContainerField, wrapper: Stack, ctx: BuildContext) -> Built:
    # Nested fields are added by build_field, after this titled group
    group = Stack(margin=(10, 5, 0, 5))
    group.add(Label(text=spec.label, italic=True))
    wrapper.add(group)
    return None, True


def _build_radiogroup(spec: RadioGroupField, wrapper: Stack, ctx: BuildContext) -> Built:
    group = Stack()
    group.add(Label(text="(Radio Button List - Placeholder)"))
    for option in RADIO_PLACEHOLDER_OPTIONS:
        group.add(RadioButton(content=option, group_name=spec.identifier))
    return group, False


def _build_unknown(spec: UnknownField, wrapper: Stack, ctx: BuildContext) -> Built:
    ctx.record(UnsupportedFieldKind(spec.raw_type, spec.label))
    wrapper.add(Label(text=f"(Unsupported Type: {spec.raw_type or ''})", italic=True))
    return None, False


_BUILDERS: Dict[type, Callable[..., Built]] = {
    TextboxField: _build_text,
    MultilineField: _build_text,
    CheckboxField: _build_checkbox,
    DropdownField: _build_dropdown,
    DatepickerField: _build_datepicker,
    LabelField: _build_label,
    PhotoField: _build_photo,
    GpsField: _build_gps,
    ContainerField: _build_container,
    RadioGroupField: _build_radiogroup,
    UnknownField: _build_unknown,
}


def _wrap_field(spec: BaseField, ctx: BuildContext) -> Stack:
    builder = _BUILDERS.get(type(spec))
    if builder is None:
        raise TypeError(f"no widget builder for {type(spec).__name__}")

    wrapper = Stack(spacing=2)
    auto_label = wrapper.add(Label(text=spec.label, bold=True))
    control, replaces_label = builder(spec, wrapper, ctx)
    if replaces_label:
        wrapper.remove(auto_label)

    if control is not None:
        wrapper.add(control)
        if spec.mandatory:
            auto_label.text += REQUIRED_MARKER
            ctx.registry.register(control, spec.label)
            log.debug("factory.build: registered mandatory %s id=%s label=%r", control.kind, control.widget_id, spec.label)
    return wrapper


def build_field(spec: BaseField, ctx: BuildContext) -> Widget:
    """Build the widget subtree for one field.

    The result is a Stack holding a bold auto label followed by the field's
    control. Label and container fields replace the auto label with their
    own content. A mandatory field gets the required marker on its label and
    its primary control registered in ``ctx.registry``.

    Containers are expanded with an explicit stack, so nesting depth is
    bounded by memory only.
    """
    root: Optional[Stack] = None
    # Each entry: (field spec or ready-made widget, group it goes into)
    pending: List[Tuple[Union[BaseField, Widget], Optional[Stack]]] = [(spec, None)]
    while pending:
        item, parent = pending.pop()
        if isinstance(item, Widget):
            parent.add(item)
            continue
        wrapper = _wrap_field(item, ctx)
        if parent is None:
            root = wrapper
        else:
            parent.add(wrapper)
        if isinstance(item, ContainerField):
            # The container builder leaves its group as the wrapper's only child
            group = wrapper.children()[-1]
            if item.allow_add_clone:
                # No cloning yet; the button only marks where it will hook in
                pending.append((Button(text="Add Item"), group))
            for child in reversed(item.nested_fields):
                pending.append((child, group))
    return root
