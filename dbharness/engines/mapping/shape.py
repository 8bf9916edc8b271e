"""
Record shapes: the fields a result row is mapped onto.

Supported record types:

- dataclasses (built with their constructor),
- pydantic models (built with ``model_construct``; values are already converted),
- NamedTuples (built with keyword arguments),
- plain annotated classes with a no-argument constructor (attributes set after),
- any class with a ``from_row(row)`` classmethod, which builds itself from a
  case-insensitive view of the row.

Field lookup by column name ignores case. Shapes are cached per type.
"""

import copy
import dataclasses
import functools
import inspect
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, ClassVar, Protocol, get_origin, get_type_hints

from pydantic import BaseModel

from .convert import unwrap_optional, zero_value

_MISSING = object()


class RowPopulatable(Protocol):
    """Record types that populate themselves from a row."""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Any: ...


class RowView(Mapping[str, Any]):
    """Read-only row keyed by column name, looked up ignoring case."""

    def __init__(self, columns: Sequence[str], values: Sequence[Any]) -> None:
        self._columns = list(columns)
        self._values = {c.lower(): v for c, v in zip(columns, values, strict=True)}

    def __getitem__(self, key: str) -> Any:
        return self._values[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)


@dataclasses.dataclass(frozen=True)
class FieldSpec:
    name: str
    annotation: Any
    nullable: bool
    default: Any = _MISSING
    default_factory: Any = None

    def initial(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not _MISSING:
            # Each record gets its own copy of a mutable default.
            return copy.deepcopy(self.default)
        return zero_value(self.annotation)


def _type_hints(record_type: type) -> dict[str, Any]:
    try:
        return get_type_hints(record_type)
    except (NameError, TypeError):
        return dict(getattr(record_type, "__annotations__", {}))


def _dataclass_fields(record_type: type) -> list[FieldSpec]:
    hints = _type_hints(record_type)
    specs = []
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        annotation = hints.get(f.name, f.type)
        specs.append(
            FieldSpec(
                name=f.name,
                annotation=annotation,
                nullable=unwrap_optional(annotation)[1],
                default=_MISSING if f.default is dataclasses.MISSING else f.default,
                default_factory=(
                    None if f.default_factory is dataclasses.MISSING else f.default_factory
                ),
            )
        )
    return specs


def _pydantic_fields(record_type: type[BaseModel]) -> list[FieldSpec]:
    specs = []
    for name, info in record_type.model_fields.items():
        annotation = info.annotation
        default = _MISSING if info.is_required() else info.default
        factory = info.default_factory
        specs.append(
            FieldSpec(
                name=name,
                annotation=annotation,
                nullable=unwrap_optional(annotation)[1],
                default=_MISSING if factory is not None else default,
                default_factory=factory,
            )
        )
    return specs


def _plain_fields(record_type: type) -> list[FieldSpec]:
    specs = []
    for name, annotation in _type_hints(record_type).items():
        if name.startswith("_") or get_origin(annotation) is ClassVar:
            continue
        specs.append(
            FieldSpec(
                name=name,
                annotation=annotation,
                nullable=unwrap_optional(annotation)[1],
                default=getattr(record_type, name, _MISSING),
            )
        )
    return specs


def _namedtuple_fields(record_type: type) -> list[FieldSpec]:
    hints = _type_hints(record_type)
    defaults = record_type._field_defaults  # type: ignore[attr-defined]
    specs = []
    for name in record_type._fields:  # type: ignore[attr-defined]
        annotation = hints.get(name, Any)
        specs.append(
            FieldSpec(
                name=name,
                annotation=annotation,
                nullable=unwrap_optional(annotation)[1],
                default=defaults.get(name, _MISSING),
            )
        )
    return specs


def _is_namedtuple(record_type: type) -> bool:
    return issubclass(record_type, tuple) and hasattr(record_type, "_fields")


def _require_no_arg_constructor(record_type: type) -> None:
    try:
        signature = inspect.signature(record_type)
    except (TypeError, ValueError):
        return
    required = [
        p.name
        for p in signature.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if required:
        raise TypeError(
            f"{record_type.__name__} cannot be built without arguments "
            f"(requires {', '.join(required)}); use a dataclass, NamedTuple, "
            "pydantic model or a from_row classmethod"
        )


class RecordShape:
    """Field specs of a record type, keyed by lower-cased field name."""

    def __init__(self, record_type: type) -> None:
        if not isinstance(record_type, type):
            raise TypeError(f"Record type must be a class, got: {record_type!r}")
        self.record_type = record_type
        self.populates_itself = callable(getattr(record_type, "from_row", None))

        if self.populates_itself:
            self._build_kind = "from_row"
            specs: list[FieldSpec] = []
        elif dataclasses.is_dataclass(record_type):
            self._build_kind = "dataclass"
            specs = _dataclass_fields(record_type)
        elif issubclass(record_type, BaseModel):
            self._build_kind = "pydantic"
            specs = _pydantic_fields(record_type)
        elif _is_namedtuple(record_type):
            self._build_kind = "namedtuple"
            specs = _namedtuple_fields(record_type)
        else:
            _require_no_arg_constructor(record_type)
            self._build_kind = "plain"
            specs = _plain_fields(record_type)

        self.fields: dict[str, FieldSpec] = {}
        for spec in specs:
            key = spec.name.lower()
            if key in self.fields:
                raise TypeError(
                    f"{record_type.__name__} has fields differing only by case: "
                    f"{self.fields[key].name!r}, {spec.name!r}"
                )
            self.fields[key] = spec

    def match(self, column: str) -> FieldSpec | None:
        return self.fields.get(column.lower())

    def initial_values(self) -> dict[str, Any]:
        return {spec.name: spec.initial() for spec in self.fields.values()}

    def from_row(self, columns: Sequence[str], row: Sequence[Any]) -> Any:
        return self.record_type.from_row(RowView(columns, row))

    def build(self, values: dict[str, Any]) -> Any:
        if self._build_kind in ("dataclass", "namedtuple"):
            return self.record_type(**values)
        if self._build_kind == "pydantic":
            return self.record_type.model_construct(**values)
        instance = self.record_type()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance


@functools.lru_cache(maxsize=256)
def shape_of(record_type: type) -> RecordShape:
    return RecordShape(record_type)
