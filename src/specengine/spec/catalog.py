"""Element catalog - declared prop schema per element type.

Props are checked once when a snapshot enters the engine. Any prop may hold a
binding instead of a literal, so every declared field accepts ``Binding``.
Undeclared props are allowed; renderers ignore what they do not know.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class Binding(BaseModel):
    """Marker object naming a state path."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    state: str | None = Field(default=None, alias="$state")
    bind_state: str | None = Field(default=None, alias="$bindState")

    @model_validator(mode="after")
    def _one_path(self) -> "Binding":
        if self.state is None and self.bind_state is None:
            raise ValueError("binding needs $state or $bindState")
        return self


Scalar = Union[str, int, float, bool]
Bindable = Union[Scalar, Binding, None]
ItemList = Union[list[Any], Binding, None]


class Props(BaseModel):
    """Base prop schema: everything optional, extras allowed."""

    model_config = ConfigDict(extra="allow")


class StackProps(Props):
    direction: Bindable = None
    gap: Bindable = None
    align: Bindable = None
    justify: Bindable = None


class GridProps(Props):
    columns: Bindable = None
    gap: Bindable = None


class CardProps(Props):
    title: Bindable = None
    description: Bindable = None
    maxWidth: Bindable = None


class HeadingProps(Props):
    text: Bindable = None
    level: Bindable = None


class TextProps(Props):
    content: Bindable = None
    muted: Bindable = None


class BadgeProps(Props):
    text: Bindable = None
    variant: Bindable = None


class AlertProps(Props):
    title: Bindable = None
    description: Bindable = None
    variant: Bindable = None


class MetricProps(Props):
    label: Bindable = None
    value: Bindable = None
    detail: Bindable = None
    trend: Bindable = None


class TableProps(Props):
    columns: ItemList = None
    data: ItemList = None


class ChartProps(Props):
    title: Bindable = None
    data: ItemList = None
    xKey: Bindable = None
    yKey: Bindable = None


class LineChartProps(ChartProps):
    yKeys: ItemList = None


class TabsProps(Props):
    tabs: ItemList = None
    defaultValue: Bindable = None
    value: Bindable = None


class TabContentProps(Props):
    value: Bindable = None


class ItemsProps(Props):
    items: ItemList = None


class OptionsProps(Props):
    label: Bindable = None
    options: ItemList = None
    value: Bindable = None


class TextInputProps(Props):
    label: Bindable = None
    placeholder: Bindable = None
    value: Bindable = None


class MapProps(Props):
    latitude: Bindable = None
    longitude: Bindable = None
    zoom: Bindable = None
    mapStyle: Bindable = None
    markers: ItemList = None


CATALOG: dict[str, type[Props]] = {
    "Stack": StackProps,
    "Grid": GridProps,
    "Card": CardProps,
    "Heading": HeadingProps,
    "Text": TextProps,
    "Badge": BadgeProps,
    "Alert": AlertProps,
    "Metric": MetricProps,
    "Table": TableProps,
    "BarChart": ChartProps,
    "LineChart": LineChartProps,
    "PieChart": ChartProps,
    "Tabs": TabsProps,
    "TabContent": TabContentProps,
    "Accordion": ItemsProps,
    "Timeline": ItemsProps,
    "RadioGroup": OptionsProps,
    "SelectInput": OptionsProps,
    "TextInput": TextInputProps,
    "Map": MapProps,
}

# Types whose `data` prop binds a whole state array
DATA_BEARING_TYPES = frozenset({"Table", "BarChart", "LineChart", "PieChart"})

# Props whose value acts as the element's visible label
LABEL_PROPS = ("title", "text", "label", "content")


def is_known_type(element_type: str) -> bool:
    return element_type in CATALOG


def check_props(element_type: str, props: dict[str, Any]) -> list[str]:
    """
    Check props against the declared schema of their element type.

    Args:
        element_type: Element type tag
        props: Raw prop mapping

    Returns:
        Human readable problems; empty when the props conform or the type is
        not in the catalog
    """
    schema = CATALOG.get(element_type)
    if schema is None:
        return []
    try:
        schema.model_validate(props)
    except ValidationError as e:
        return [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
    return []


__all__ = [
    "Binding",
    "Props",
    "CATALOG",
    "DATA_BEARING_TYPES",
    "LABEL_PROPS",
    "is_known_type",
    "check_props",
]
