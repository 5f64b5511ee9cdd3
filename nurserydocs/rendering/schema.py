"""
Template layout model.

A layout is an ordered tuple of components. Each component is a frozen
pydantic model tagged by its ``type``; ``box`` components nest further
components. Wire form is camelCase (``visibleWhen``, ``rowsBinding``), snake_case
is accepted as well.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Annotated, Any, Iterator, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


COMPONENT_KINDS = (
    "heading",
    "text",
    "list",
    "chips",
    "divider",
    "spacer",
    "image",
    "box",
    "table",
)


class LayoutValidationError(ValueError):
    """Raised when a layout is structurally invalid and must not be rendered."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid layout: " + "; ".join(self.errors))


class _Node(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON nulls mean "not set", so defaults apply
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Border(_Node):
    width: Optional[float] = Field(default=None, ge=0)
    color: Optional[str] = None


class Style(_Node):
    font_size: Optional[float] = Field(default=None, ge=0)
    bold: bool = False
    italic: bool = False
    color: Optional[str] = None
    background: Optional[str] = None
    padding: Optional[float] = Field(default=None, ge=0)
    margin_bottom: Optional[float] = Field(default=None, ge=0)
    align: Optional[str] = None
    border: Optional[Border] = None


class Condition(_Node):
    field: str
    operator: Literal["exists", "equals", "not_equals"] = "exists"
    value: Any = None


class ListItem(_Node):
    label: Optional[str] = None
    binding: Optional[str] = None


class Chip(_Node):
    label: Optional[str] = None
    color: Optional[str] = None


class Column(_Node):
    key: str
    label: str
    binding: Optional[str] = None
    width: Optional[float] = Field(default=None, ge=0)
    align: Optional[Literal["left", "center", "right"]] = None
    format: Optional[Literal["text", "currency", "number", "date"]] = None


class BaseComponent(_Node):
    id: str
    text: Optional[str] = None
    label: Optional[str] = None
    binding: Optional[str] = None
    style: Optional[Style] = None
    visible_when: Tuple[Condition, ...] = ()

    @field_validator("visible_when", mode="before")
    @classmethod
    def _as_condition_list(cls, value: Any) -> Any:
        if isinstance(value, (Mapping, Condition)):
            return (value,)
        return value


class Heading(BaseComponent):
    type: Literal["heading"] = "heading"
    level: int = 2


class Text(BaseComponent):
    type: Literal["text"] = "text"


class ListComponent(BaseComponent):
    type: Literal["list"] = "list"
    items: Tuple[ListItem, ...] = ()


class Chips(BaseComponent):
    type: Literal["chips"] = "chips"
    items: Tuple[Chip, ...] = ()


class Divider(BaseComponent):
    type: Literal["divider"] = "divider"


class Spacer(BaseComponent):
    type: Literal["spacer"] = "spacer"
    size: float = Field(default=12, ge=0)


class Image(BaseComponent):
    type: Literal["image"] = "image"
    url: Optional[str] = None
    width: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)


class Box(BaseComponent):
    type: Literal["box"] = "box"
    children: Tuple["Component", ...] = ()


class Table(BaseComponent):
    type: Literal["table"] = "table"
    rows_binding: Optional[str] = None
    columns: Tuple[Column, ...] = ()
    show_header: bool = True


class UnknownComponent(BaseComponent):
    """A component of a kind this engine does not draw. Renders as nothing."""

    model_config = ConfigDict(extra="allow")

    type: str


def _component_tag(value: Any) -> str:
    if isinstance(value, Mapping):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in COMPONENT_KINDS else "unknown"


Component = Annotated[
    Union[
        Annotated[Heading, Tag("heading")],
        Annotated[Text, Tag("text")],
        Annotated[ListComponent, Tag("list")],
        Annotated[Chips, Tag("chips")],
        Annotated[Divider, Tag("divider")],
        Annotated[Spacer, Tag("spacer")],
        Annotated[Image, Tag("image")],
        Annotated[Box, Tag("box")],
        Annotated[Table, Tag("table")],
        Annotated[UnknownComponent, Tag("unknown")],
    ],
    Discriminator(_component_tag),
]

Layout = Tuple[Component, ...]

Box.model_rebuild()

_LAYOUT_ADAPTER = TypeAdapter(List[Component])


def _check_acyclic(nodes: Sequence[Any], ancestors: frozenset, path: str) -> None:
    for index, node in enumerate(nodes):
        if not isinstance(node, Mapping):
            continue
        where = f"{path}[{index}]"
        if id(node) in ancestors:
            raise LayoutValidationError([f"{where}: component contains itself"])
        children = node.get("children")
        if isinstance(children, (list, tuple)):
            if id(children) in ancestors:
                raise LayoutValidationError([f"{where}.children: component contains itself"])
            _check_acyclic(children, ancestors | {id(node), id(children)}, f"{where}.children")


def _format_errors(exc: ValidationError) -> List[str]:
    errors = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        errors.append(f"{loc}: {error.get('msg', 'invalid value')}" if loc else error.get("msg", "invalid value"))
    return errors


def load_layout(source: Any) -> Layout:
    """
    Validate raw layout input and return an immutable component tree.

    Accepts a list of component mappings, a ``{"components": [...]}`` mapping,
    a JSON string of either, or already built components.
    """
    if isinstance(source, (str, bytes)):
        try:
            source = json.loads(source)
        except json.JSONDecodeError as exc:
            raise LayoutValidationError([f"layout is not valid JSON: {exc}"]) from exc
    if isinstance(source, Mapping):
        if "components" not in source:
            raise LayoutValidationError(["layout mapping has no 'components' list"])
        source = source["components"]
    if not isinstance(source, (list, tuple)):
        raise LayoutValidationError(["layout must be a list of components"])

    _check_acyclic(source, frozenset({id(source)}), "layout")
    try:
        components = _LAYOUT_ADAPTER.validate_python(list(source))
    except ValidationError as exc:
        raise LayoutValidationError(_format_errors(exc)) from exc
    return tuple(components)


def dump_layout(layout: Sequence[BaseComponent]) -> List[dict]:
    return [
        component.model_dump(mode="json", by_alias=True, exclude_none=True)
        for component in layout
    ]


def iter_components(layout: Sequence[BaseComponent]) -> Iterator[BaseComponent]:
    for component in layout:
        yield component
        if isinstance(component, Box):
            yield from iter_components(component.children)
