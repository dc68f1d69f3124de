from datetime import date
from typing import get_args

import pytest

from dynform.errors import InvalidDefaultValue, UnsupportedFieldKind
from dynform.factory import PLACEHOLDER_OPTIONS, BuildContext, build_field
from dynform.schema import (
    CheckboxField,
    ContainerField,
    DatepickerField,
    DropdownField,
    FieldSpec,
    GpsField,
    LabelField,
    MultilineField,
    PhotoField,
    RadioGroupField,
    TextboxField,
    UnknownField,
)
from dynform.widgets import Button, CheckBox, DatePicker, Label, Picker, RadioButton, Stack, TextEntry


def _build(spec):
    ctx = BuildContext()
    wrapper = build_field(spec, ctx)
    return wrapper, ctx


def _control(wrapper):
    return wrapper.children()[-1]


def test_every_field_variant_has_a_builder():
    union = get_args(FieldSpec)[0]
    for cls in get_args(union):
        wrapper, _ = _build(cls())
        assert isinstance(wrapper, Stack)


def test_textbox_has_auto_label_and_entry():
    wrapper, ctx = _build(TextboxField(label="Name", identifier="txtName", default_value="Ana"))
    label, entry = wrapper.children()
    assert isinstance(label, Label) and label.text == "Name" and label.bold
    assert isinstance(entry, TextEntry)
    assert entry.text == "Ana"
    assert entry.placeholder == "Enter Name"
    assert entry.automation_id == "txtName"
    assert entry.multiline is False
    assert len(ctx.registry) == 0


def test_multiline_is_taller_entry():
    wrapper, _ = _build(MultilineField(label="Notes"))
    entry = _control(wrapper)
    assert isinstance(entry, TextEntry)
    assert entry.multiline is True
    assert entry.height_request == 100


@pytest.mark.parametrize(
    "default,expected",
    [
        ("true", True),
        ("TRUE", True),
        ("True", True),
        ("false", False),
        ("yes", False),
        ("1", False),
        (" true", False),
        ("", False),
        (None, False),
    ],
)
def test_checkbox_initial_state(default, expected):
    wrapper, _ = _build(CheckboxField(label="Agree", default_value=default))
    box = _control(wrapper)
    assert isinstance(box, CheckBox)
    assert box.is_checked is expected


def test_dropdown_without_options_gets_placeholders():
    wrapper, _ = _build(DropdownField(label="Color"))
    picker = _control(wrapper)
    assert isinstance(picker, Picker)
    assert picker.items == ["Option 1", "Option 2", "Option 3"]
    assert tuple(picker.items) == PLACEHOLDER_OPTIONS
    assert picker.title == "Select Color"
    assert picker.selected_index == -1


def test_dropdown_preselects_exact_default():
    wrapper, _ = _build(DropdownField(label="Color", options=("Red", "Green"), default_value="Green"))
    picker = _control(wrapper)
    assert picker.items == ["Red", "Green"]
    assert picker.selected_index == 1
    assert picker.selected_item == "Green"


@pytest.mark.parametrize("default", ["green", "Blue", "", None])
def test_dropdown_default_not_matching_leaves_selection_empty(default):
    wrapper, _ = _build(DropdownField(label="Color", options=("Red", "Green"), default_value=default))
    assert _control(wrapper).selected_index == -1


def test_dropdown_with_empty_options_array():
    wrapper, _ = _build(DropdownField(label="Color", options=()))
    assert _control(wrapper).items == []


@pytest.mark.parametrize(
    "default,expected",
    [
        ("2024-03-15", date(2024, 3, 15)),
        ("2024-03-15T10:30:00", date(2024, 3, 15)),
        ("03/15/2024", date(2024, 3, 15)),
        ("15.03.2024", date(2024, 3, 15)),
        ("March 15, 2024", date(2024, 3, 15)),
    ],
)
def test_datepicker_parses_default(default, expected):
    wrapper, ctx = _build(DatepickerField(label="When", default_value=default))
    picker = _control(wrapper)
    assert isinstance(picker, DatePicker)
    assert picker.date == expected
    assert ctx.anomalies == []


def test_datepicker_unparsable_default_uses_today():
    wrapper, ctx = _build(DatepickerField(label="When", default_value="someday"))
    assert _control(wrapper).date == date.today()
    assert len(ctx.anomalies) == 1
    assert isinstance(ctx.anomalies[0], InvalidDefaultValue)
    assert ctx.anomalies[0].field_label == "When"


def test_datepicker_without_default_uses_today():
    wrapper, ctx = _build(DatepickerField(label="When"))
    assert _control(wrapper).date == date.today()
    assert ctx.anomalies == []


def test_label_replaces_auto_label():
    wrapper, _ = _build(LabelField(label="Heading", default_value="Read carefully"))
    children = wrapper.children()
    assert len(children) == 1
    assert isinstance(children[0], Label)
    assert children[0].text == "Read carefully"
    assert children[0].bold is False

    wrapper, _ = _build(LabelField(label="Heading"))
    assert [c.text for c in wrapper.children()] == ["Heading"]


def test_photo_and_gps_are_placeholder_triggers():
    photo = _control(_build(PhotoField(label="Picture"))[0])
    gps = _control(_build(GpsField(label="Location"))[0])
    assert isinstance(photo, Button) and photo.text == "Add Picture" and photo.action is None
    assert isinstance(gps, Button) and gps.text == "Get Location" and gps.action is None


def test_container_nests_fields_under_titled_group():
    spec = ContainerField(
        label="Rooms",
        allow_add_clone=True,
        nested_fields=(TextboxField(label="Room name"), CheckboxField(label="Clean")),
    )
    wrapper, _ = _build(spec)
    (group,) = wrapper.children()
    assert isinstance(group, Stack)
    title, first, second, add = group.children()
    assert title.text == "Rooms" and title.italic
    assert isinstance(_control(first), TextEntry)
    assert isinstance(_control(second), CheckBox)
    assert isinstance(add, Button) and add.text == "Add Item"


def test_container_without_clone_has_no_add_button():
    wrapper, _ = _build(ContainerField(label="Rooms", nested_fields=(TextboxField(label="A"),)))
    (group,) = wrapper.children()
    assert not any(isinstance(c, Button) for c in group.children())


def test_radiogroup_is_placeholder():
    wrapper, _ = _build(RadioGroupField(label="Pick", identifier="grp"))
    label, group = wrapper.children()
    assert label.text == "Pick"
    assert isinstance(group, Stack)
    placeholder, a, b = group.children()
    assert placeholder.text == "(Radio Button List - Placeholder)"
    assert [r.content for r in (a, b)] == ["Option A", "Option B"]
    assert all(isinstance(r, RadioButton) and r.group_name == "grp" for r in (a, b))


def test_unknown_kind_degrades_to_placeholder():
    wrapper, ctx = _build(UnknownField(label="Sign", raw_type="signature"))
    label, note = wrapper.children()
    assert label.text == "Sign"
    assert note.text == "(Unsupported Type: signature)"
    assert note.italic
    assert len(ctx.anomalies) == 1
    assert isinstance(ctx.anomalies[0], UnsupportedFieldKind)
    assert ctx.anomalies[0].raw_type == "signature"


@pytest.mark.parametrize(
    "spec",
    [
        TextboxField(label="A", mandatory=True),
        MultilineField(label="A", mandatory=True),
        CheckboxField(label="A", mandatory=True),
        DropdownField(label="A", mandatory=True),
        DatepickerField(label="A", mandatory=True),
        PhotoField(label="A", mandatory=True),
        GpsField(label="A", mandatory=True),
        RadioGroupField(label="A", mandatory=True),
    ],
)
def test_mandatory_registers_primary_control(spec):
    wrapper, ctx = _build(spec)
    label, control = wrapper.children()
    assert label.text == "A *"
    assert ctx.registry.is_mandatory(control)
    assert ctx.registry.label_of(control) == "A"
    assert not ctx.registry.is_mandatory(label)
    assert not ctx.registry.is_mandatory(wrapper)
    assert len(ctx.registry) == 1


def test_non_mandatory_fields_are_not_registered():
    wrapper, ctx = _build(TextboxField(label="A"))
    assert not ctx.registry.is_mandatory(_control(wrapper))
    assert wrapper.children()[0].text == "A"


@pytest.mark.parametrize(
    "spec",
    [
        LabelField(label="A", mandatory=True),
        ContainerField(label="A", mandatory=True),
        UnknownField(label="A", raw_type="x", mandatory=True),
    ],
)
def test_mandatory_without_control_registers_nothing(spec):
    wrapper, ctx = _build(spec)
    assert len(ctx.registry) == 0
    assert all(not getattr(c, "text", "").endswith(" *") for c in wrapper.children())


def test_nested_mandatory_fields_share_the_context():
    spec = ContainerField(
        label="Outer",
        nested_fields=(
            TextboxField(label="Inner", mandatory=True),
            ContainerField(label="Deeper", nested_fields=(DropdownField(label="Deepest", mandatory=True),)),
        ),
    )
    _, ctx = _build(spec)
    assert len(ctx.registry) == 2


def test_unknown_sibling_does_not_abort_build():
    spec = ContainerField(
        label="G",
        nested_fields=(UnknownField(label="X", raw_type="hologram"), TextboxField(label="Y", mandatory=True)),
    )
    wrapper, ctx = _build(spec)
    (group,) = wrapper.children()
    assert len(group.children()) == 3
    assert len(ctx.anomalies) == 1
    assert len(ctx.registry) == 1


def test_each_build_creates_distinct_widgets():
    spec = TextboxField(label="A", mandatory=True)
    ctx = BuildContext()
    first = _control(build_field(spec, ctx))
    second = _control(build_field(spec, ctx))
    assert first is not second
    assert first.widget_id != second.widget_id
    assert len(ctx.registry) == 2
