"""
JSON shape merging.

Merges any number of parsed JSON documents into one SchemaNode that every
document conforms to. Heterogeneous inputs become a union with one
alternative per kind, objects collect the union of their properties, and
arrays are treated as homogeneous by pooling their elements.
"""

from typing import Any, Dict, List, Optional, Sequence

from ..config import AnalysisConfig, ENUM_MAX_VALUES, ENUM_MIN_VALUES
from .formats import detect_format
from .nodes import (
    ARRAY,
    BOOLEAN,
    INTEGER,
    NULL,
    NUMBER,
    OBJECT,
    STRING,
    UNION,
    SchemaNode,
)


def json_kind(value: Any) -> str:
    """
    Return the JSON kind of a parsed value.

    bool is checked before int since it is an int subclass.

    Raises:
        TypeError: For values json.loads never produces
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, dict):
        return OBJECT
    if isinstance(value, (list, tuple)):
        return ARRAY
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def json_depth(value: Any) -> int:
    """
    Nesting depth of a parsed JSON value (scalars are depth 0).

    Walks the value with an explicit stack so arbitrarily deep documents
    never hit the recursion limit.
    """
    deepest = 0
    stack = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        if isinstance(current, dict):
            children = current.values()
        elif isinstance(current, (list, tuple)):
            children = current
        else:
            deepest = max(deepest, depth)
            continue
        deepest = max(deepest, depth + 1)
        stack.extend((child, depth + 1) for child in children)
    return deepest


class ShapeMerger:
    """
    Recursive merger of JSON values into SchemaNodes.

    Example:
        merger = ShapeMerger()
        node = merger.merge([{"a": 1}, {"a": 2, "b": "x"}])

        node.required      # ('a',)
        node.to_openapi()  # {'type': 'object', 'properties': {...}, 'required': ['a']}
    """

    def __init__(self, enum_min_values: int = ENUM_MIN_VALUES, enum_max_values: int = ENUM_MAX_VALUES):
        """
        Initialize merger.

        Args:
            enum_min_values: Fewest distinct strings reported as an enum
            enum_max_values: Most distinct strings reported as an enum
        """
        self.enum_min_values = enum_min_values
        self.enum_max_values = enum_max_values

    @classmethod
    def from_config(cls, config: Optional[AnalysisConfig]) -> 'ShapeMerger':
        config = config or AnalysisConfig()
        return cls(enum_min_values=config.enum_min_values, enum_max_values=config.enum_max_values)

    def merge(self, values: Sequence[Any]) -> SchemaNode:
        """
        Merge parsed JSON values into one schema node.

        Raises:
            ValueError: If values is empty
        """
        if not values:
            raise ValueError("Cannot merge an empty set of values")

        # dicts keep insertion order: kinds in order of first appearance
        by_kind: Dict[str, List[Any]] = {}
        for value in values:
            by_kind.setdefault(json_kind(value), []).append(value)

        if len(by_kind) == 1:
            kind, group = next(iter(by_kind.items()))
            return self._merge_kind(kind, group)

        return SchemaNode(
            kind=UNION,
            alternatives=tuple(self._merge_kind(kind, group) for kind, group in by_kind.items())
        )

    def _merge_kind(self, kind: str, values: List[Any]) -> SchemaNode:
        if kind == OBJECT:
            return self._merge_objects(values)
        if kind == ARRAY:
            return self._merge_arrays(values)
        if kind == STRING:
            return self._merge_strings(values)
        if kind in (INTEGER, NUMBER):
            return SchemaNode(kind=kind, minimum=min(values), maximum=max(values), example=values[0])
        return SchemaNode(kind=kind)

    def _merge_objects(self, objects: List[Dict[str, Any]]) -> SchemaNode:
        observed: Dict[str, List[Any]] = {}
        for obj in objects:
            for name, value in obj.items():
                observed.setdefault(name, []).append(value)

        properties = {name: self.merge(values) for name, values in observed.items()}

        # Required only when every merged object carries the property
        required = tuple(name for name, values in observed.items() if len(values) == len(objects))

        return SchemaNode(kind=OBJECT, properties=properties, required=required or None)

    def _merge_arrays(self, arrays: List[List[Any]]) -> SchemaNode:
        pool = [item for array in arrays for item in array]
        if not pool:
            return SchemaNode(kind=ARRAY, items=SchemaNode(kind=STRING))
        return SchemaNode(kind=ARRAY, items=self.merge(pool))

    def _merge_strings(self, values: List[str]) -> SchemaNode:
        non_empty = [value for value in values if value]
        distinct = list(dict.fromkeys(non_empty))

        enum = None
        if self.enum_min_values <= len(distinct) <= self.enum_max_values:
            enum = tuple(distinct)

        return SchemaNode(
            kind=STRING,
            format=detect_format(non_empty),
            enum=enum,
            example=non_empty[0] if non_empty else values[0],
        )


def merge_values(values: Sequence[Any], config: Optional[AnalysisConfig] = None) -> SchemaNode:
    """Merge parsed JSON values with a default (or given) config."""
    return ShapeMerger.from_config(config).merge(values)
