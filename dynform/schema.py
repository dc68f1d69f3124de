from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from jsonschema.validators import Draft202012Validator
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dynform.errors import SchemaError

log = logging.getLogger(__name__)

LAYOUT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "layout.schema.json"
PAGE_TYPE = "tabpage"
DEFAULT_PAGE_TITLE = "Tab"


class FieldKind(str, Enum):
    TEXTBOX = "textbox"
    MULTILINE = "multiline"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    DATEPICKER = "datepicker"
    LABEL = "label"
    PHOTO = "photo"
    GPS = "gps"
    CONTAINER = "container"
    RADIOGROUP = "radiogroup"
    UNKNOWN = "unknown"


# Wire type names (lowercased) -> kind. Producers use both the short and the long names.
KIND_ALIASES: Dict[str, FieldKind] = {
    "textbox": FieldKind.TEXTBOX,
    "multiline": FieldKind.MULTILINE,
    "multilinetextbox": FieldKind.MULTILINE,
    "checkbox": FieldKind.CHECKBOX,
    "dropdown": FieldKind.DROPDOWN,
    "datepicker": FieldKind.DATEPICKER,
    "label": FieldKind.LABEL,
    "photo": FieldKind.PHOTO,
    "gps": FieldKind.GPS,
    "container": FieldKind.CONTAINER,
    "itemscontainermaster": FieldKind.CONTAINER,
    "radiogroup": FieldKind.RADIOGROUP,
    "radiobuttonlist": FieldKind.RADIOGROUP,
}


class BaseField(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str = ""
    identifier: str = ""
    mandatory: bool = False
    default_value: Optional[str] = None


class TextboxField(BaseField):
    kind: Literal[FieldKind.TEXTBOX] = FieldKind.TEXTBOX


class MultilineField(BaseField):
    kind: Literal[FieldKind.MULTILINE] = FieldKind.MULTILINE


class CheckboxField(BaseField):
    kind: Literal[FieldKind.CHECKBOX] = FieldKind.CHECKBOX


class DropdownField(BaseField):
    kind: Literal[FieldKind.DROPDOWN] = FieldKind.DROPDOWN
    # None means the producer sent no options array at all
    options: Optional[Tuple[str, ...]] = None


class DatepickerField(BaseField):
    kind: Literal[FieldKind.DATEPICKER] = FieldKind.DATEPICKER


class LabelField(BaseField):
    kind: Literal[FieldKind.LABEL] = FieldKind.LABEL


class PhotoField(BaseField):
    kind: Literal[FieldKind.PHOTO] = FieldKind.PHOTO


class GpsField(BaseField):
    kind: Literal[FieldKind.GPS] = FieldKind.GPS


class ContainerField(BaseField):
    kind: Literal[FieldKind.CONTAINER] = FieldKind.CONTAINER
    nested_fields: Tuple["FieldSpec", ...] = ()
    allow_add_clone: bool = False


class RadioGroupField(BaseField):
    kind: Literal[FieldKind.RADIOGROUP] = FieldKind.RADIOGROUP


class UnknownField(BaseField):
    kind: Literal[FieldKind.UNKNOWN] = FieldKind.UNKNOWN
    raw_type: Optional[str] = None


FieldSpec = Annotated[
    Union[
        TextboxField,
        MultilineField,
        CheckboxField,
        DropdownField,
        DatepickerField,
        LabelField,
        PhotoField,
        GpsField,
        ContainerField,
        RadioGroupField,
        UnknownField,
    ],
    Field(discriminator="kind"),
]

ContainerField.model_rebuild()

_FIELD_ADAPTER: TypeAdapter = TypeAdapter(FieldSpec)


class PageSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = DEFAULT_PAGE_TITLE
    fields: Tuple[FieldSpec, ...] = ()


class LayoutSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    pages: Tuple[PageSpec, ...] = ()


def _load_layout_schema() -> Dict[str, Any]:
    schema = json.loads(LAYOUT_SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return schema


_LAYOUT_VALIDATOR = Draft202012Validator(_load_layout_schema())


def _decode(raw: Union[str, bytes, Dict[str, Any], None]) -> Any:
    if isinstance(raw, dict):
        return raw
    if raw is None:
        raise SchemaError("Could not read layout JSON file.")
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SchemaError(f"layout is not valid UTF-8: {exc}") from exc
    if not raw.strip():
        raise SchemaError("Could not read layout JSON file.")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"layout is not valid JSON: {exc.msg} (line {exc.lineno} column {exc.colno})") from exc
    except RecursionError as exc:
        # The C decoder nests on the interpreter stack
        raise SchemaError("layout JSON is nested too deeply to decode; pass it as an object") from exc


def check_layout_shape(doc: Any) -> List[Dict[str, str]]:
    """Return {"path", "message"} dicts for every structural problem of a layout document."""
    errors: List[Dict[str, str]] = []
    for err in _LAYOUT_VALIDATOR.iter_errors(doc):
        loc = ".".join(str(p) for p in err.path) or "(root)"
        errors.append({"path": loc, "message": str(err.message)})
    return errors


def normalize_kind(raw_type: Any) -> FieldKind:
    if not isinstance(raw_type, str):
        return FieldKind.UNKNOWN
    return KIND_ALIASES.get(raw_type.lower(), FieldKind.UNKNOWN)


def _default_value(node: Dict[str, Any]) -> Any:
    value = node.get("valorPadrao")
    if value is None:
        value = node.get("initialvalue")
    return value


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.lower() == "true"


def _field_data(node: Dict[str, Any]) -> Dict[str, Any]:
    raw_type = node.get("type")
    kind = normalize_kind(raw_type)
    label = node.get("text")
    if label is None:
        label = ""
    identifier = node.get("nome")
    if identifier is None:
        identifier = label

    data: Dict[str, Any] = {
        "kind": kind,
        "label": label,
        "identifier": identifier,
        # Only a JSON true marks a field mandatory; "true" strings do not
        "mandatory": node.get("ismandatory") is True,
        "default_value": _default_value(node),
    }
    if kind is FieldKind.DROPDOWN:
        options = node.get("opcoes")
        if isinstance(options, list):
            data["options"] = tuple(options)
    elif kind is FieldKind.CONTAINER:
        data["allow_add_clone"] = _flag(node.get("addclonebutton"))
    elif kind is FieldKind.UNKNOWN:
        data["raw_type"] = raw_type.lower() if isinstance(raw_type, str) else None
    return data


def _nested_nodes(node: Dict[str, Any]) -> Optional[List[Any]]:
    if normalize_kind(node.get("type")) is not FieldKind.CONTAINER:
        return None
    children = node.get("items")
    return children if isinstance(children, list) else None


def _field_from_node(root: Any, path: str) -> BaseField:
    """Build one FieldSpec, nested containers included, without recursing.

    Nodes are listed parents-first, then validated in reverse so every
    container sees its already-built children.
    """
    # Each entry: [node, path, indices of its children in ``order``]
    order: List[List[Any]] = []
    pending: List[Tuple[Any, str, Optional[int]]] = [(root, path, None)]
    while pending:
        node, where, parent = pending.pop()
        if not isinstance(node, dict):
            raise SchemaError("field must be an object", where)
        index = len(order)
        order.append([node, where, []])
        if parent is not None:
            order[parent][2].append(index)
        children = _nested_nodes(node)
        if children:
            for idx in range(len(children) - 1, -1, -1):
                pending.append((children[idx], f"{where}.items[{idx}]", index))

    built: List[Optional[BaseField]] = [None] * len(order)
    for index in range(len(order) - 1, -1, -1):
        node, where, child_indices = order[index]
        data = _field_data(node)
        if _nested_nodes(node) is not None:
            data["nested_fields"] = tuple(built[i] for i in child_indices)
        try:
            built[index] = _FIELD_ADAPTER.validate_python(data)
        except ValidationError as ve:
            first = ve.errors()[0] if ve.errors() else {}
            loc = ".".join(str(p) for p in first.get("loc", ()))
            at = f"{where}.{loc}" if loc else where
            raise SchemaError(f"{at}: {first.get('msg', 'invalid field')}", at) from ve
        for i in child_indices:
            built[i] = None
    return built[0]


def _page_from_node(node: Dict[str, Any], path: str) -> Optional[PageSpec]:
    if node.get("type") != PAGE_TYPE:
        log.info("schema.parse: skipping %s with type=%r (not a %s)", path, node.get("type"), PAGE_TYPE)
        return None
    title = node.get("text")
    if title is None:
        title = DEFAULT_PAGE_TITLE
    fields: List[BaseField] = []
    children = node.get("items")
    if isinstance(children, list):
        for idx, child in enumerate(children):
            fields.append(_field_from_node(child, f"{path}.items[{idx}]"))
    try:
        return PageSpec(title=title, fields=tuple(fields))
    except ValidationError as ve:
        raise SchemaError(f"{path}.text: page title must be a string", f"{path}.text") from ve


def parse_layout(raw: Union[str, bytes, Dict[str, Any], None]) -> LayoutSchema:
    """Parse a layout document into a LayoutSchema.

    Raises SchemaError when the source is empty, is not JSON, or lacks a
    top-level ``items`` array. Keys the parser does not know are ignored.
    """
    doc = _decode(raw)
    errors = check_layout_shape(doc)
    if errors:
        first = errors[0]
        log.warning("schema.parse: rejected layout errors=%d first=%s", len(errors), first)
        raise SchemaError(f"{first['path']}: {first['message']}", first["path"])

    pages: List[PageSpec] = []
    for idx, node in enumerate(doc["items"]):
        page = _page_from_node(node, f"items[{idx}]")
        if page is not None:
            pages.append(page)
    log.debug("schema.parse: parsed pages=%d", len(pages))
    return LayoutSchema(pages=tuple(pages))
