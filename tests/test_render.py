from dynform.factory import BuildContext
from dynform.pages import build_page
from dynform.render import render_page_html
from dynform.schema import (
    CheckboxField,
    ContainerField,
    DatepickerField,
    DropdownField,
    MultilineField,
    PageSpec,
    RadioGroupField,
    TextboxField,
    UnknownField,
)
from dynform.walker import flatten
from dynform.widgets import TextEntry


def _page(*fields, title="Info"):
    return build_page(PageSpec(title=title, fields=fields), BuildContext())


def test_render_page_contains_controls_and_trigger():
    page = _page(
        TextboxField(label="Name", identifier="txtName", mandatory=True),
        CheckboxField(label="Agree", default_value="true"),
        DropdownField(label="Color", options=("Red", "Green"), default_value="Green"),
        DatepickerField(label="When", default_value="2024-03-15"),
    )
    html = render_page_html(page)
    assert html.lstrip().startswith("<!doctype html>")
    assert "<title>Info</title>" in html
    entry = next(w for w in flatten(page) if isinstance(w, TextEntry))
    assert f'name="{entry.widget_id}"' in html
    assert 'data-automation-id="txtName"' in html
    assert "<strong>Name *</strong>" in html
    assert 'type="checkbox"' in html and " checked" in html
    assert '<option value="Green" selected>Green</option>' in html
    assert 'value="2024-03-15"' in html
    assert 'data-action="validate"' in html
    assert ">Validate Page</button>" in html


def test_render_multiline_and_placeholders():
    html = render_page_html(
        _page(
            MultilineField(label="Notes"),
            RadioGroupField(label="Pick"),
            UnknownField(label="Sign", raw_type="signature"),
            ContainerField(label="Rooms", allow_add_clone=True),
        )
    )
    assert "<textarea" in html and "height: 100px" in html
    assert 'type="radio"' in html and "Option A" in html
    assert "<em>(Unsupported Type: signature)</em>" in html
    assert "<em>Rooms</em>" in html
    assert ">Add Item</button>" in html


def test_render_escapes_user_text():
    html = render_page_html(_page(TextboxField(label="<script>x</script>"), title="<b>T</b>"))
    assert "<script>x</script>" not in html
    assert "&lt;script&gt;" in html
    assert "<b>T</b>" not in html


def test_templates_dir_override(monkeypatch, tmp_path):
    (tmp_path / "partials").mkdir()
    (tmp_path / "page.html").write_text("PAGE[{{ page.title }}]{{ body }}", encoding="utf-8")
    (tmp_path / "partials" / "generic.html").write_text("<{{ w.kind }}>", encoding="utf-8")
    monkeypatch.setenv("DYNFORM_TEMPLATES_DIR", str(tmp_path))
    html = render_page_html(_page(title="Custom"))
    assert html == "PAGE[Custom]<scroll>"
