from collections.abc import Callable, Mapping, Sequence
from dataclasses import MISSING, dataclass, fields, is_dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum
import types
from typing import Annotated, Any, Literal, Union, get_args, get_origin, get_type_hints
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer, PlainValidator, PydanticSchemaGenerationError, TypeAdapter, create_model
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined, to_json

from jsonmanager.serialization.adapter import can_deserialize, can_serialize
from jsonmanager.serialization.config import SerializerConfig

_CONTAINERS = (list, tuple, set, frozenset, dict, Sequence, Mapping)
_MAPPINGS = (dict, Mapping)
_SIMPLE_KEYS = (str, int, float, Enum, UUID, date, time, Decimal)

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("=", "\\u003d"),
    ("'", "\\u0027"),
)

class SerializationException(ValueError):
    '''Value cannot be converted to or from JSON'''

@dataclass(frozen=True)
class _ClassField:
    name: str
    annotation: Any
    info: FieldInfo

def _guarded(func: Callable[[Any], Any], action: str) -> Callable[[Any], Any]:
    # pydantic only turns ValueError and AssertionError into validation errors
    def call(value):
        try:
            return func(value)
        except ValueError:
            raise
        except Exception as ex:
            raise ValueError(f"{action} failed: {ex!r}") from ex
    return call

def _escape_html(text: str) -> str:
    # these characters only ever occur inside JSON string literals
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text

def _same(before: tuple, after: tuple) -> bool:
    return all(a is b for a, b in zip(before, after))

def _class_fields(cls: type) -> list[_ClassField] | None:
    if issubclass(cls, BaseModel):
        return [
            _ClassField(
                name,
                info.annotation,
                Field(default=info.default, alias=info.alias or name)
                if info.default_factory is None
                else Field(default_factory=info.default_factory, alias=info.alias or name)
            )
            for name, info in cls.model_fields.items()
        ]
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        return None
    class_fields = []
    for f in fields(cls):
        if not f.init:
            continue
        if f.default_factory is not MISSING:
            info = Field(default_factory=f.default_factory, alias=f.name)
        else:
            info = Field(default=PydanticUndefined if f.default is MISSING else f.default, alias=f.name)
        class_fields.append(_ClassField(f.name, hints.get(f.name, Any), info))
    return class_fields

class JsonEngine:
    """
    Configured serializer instance.

    Holds an immutable snapshot of the adapters it was built with, so registry
    changes made afterwards are not visible until a new engine is built.
    Every call is delegated to pydantic. Adapters are attached to their types
    as plain validators and plain serializers wherever those types occur:
    at the top level, inside unions and containers, and in the fields of
    dataclasses and models. Such classes are validated and dumped through a
    generated model holding the resolved field types, which is also where
    transient fields are left out.
    """

    def __init__(self, config: SerializerConfig, adapters: Mapping[Any, object]):
        self._config = config
        self._adapters = dict(adapters)
        self._type_adapters: dict[Any, TypeAdapter] = {}
        self._resolved_classes: dict[type, Any] = {}
        self._resolving: set[type] = set()
        for type_, adapter in self._adapters.items():
            self._with_adapter(type_, adapter)

    @property
    def config(self):
        return self._config

    @property
    def adapters(self):
        return dict(self._adapters)

    def _dump(self, type_adapter: TypeAdapter, value: Any) -> Any:
        return type_adapter.dump_python(value, mode="json", by_alias=True, exclude_none=not self._config.serialize_nulls)

    def _with_adapter(self, type_: Any, adapter: object) -> Any:
        # validator goes first so the serializer does not need a default schema for type_
        metadata: list[Any] = []
        name = type(adapter).__name__
        if can_deserialize(adapter):
            metadata.append(PlainValidator(_guarded(adapter.deserialize, f"{name}.deserialize")))
        if can_serialize(adapter):
            metadata.append(PlainSerializer(_guarded(adapter.serialize, f"{name}.serialize"), return_type=Any))
        if not metadata:
            raise TypeError(f"Adapter {adapter!r} for {type_!r} has neither serialize nor deserialize")
        return Annotated[type_, *metadata]

    def _with_pairs(self, key_type: Any, value_type: Any) -> Any:
        pairs = TypeAdapter(list[tuple[self._resolve_type(key_type), self._resolve_type(value_type)]])
        def to_pairs(mapping):
            return self._dump(pairs, list(mapping.items()))
        def from_pairs(data):
            items = data.items() if isinstance(data, dict) else data
            return dict(pairs.validate_python(list(items)))
        return Annotated[Any, PlainValidator(_guarded(from_pairs, "map")), PlainSerializer(_guarded(to_pairs, "map"), return_type=Any)]

    def _is_simple_key(self, key_type: Any) -> bool:
        if key_type is Any or get_origin(key_type) is Literal:
            return True
        if get_origin(key_type) is Annotated:
            key_type = get_args(key_type)[0]
        if key_type in self._adapters:
            return False
        return isinstance(key_type, type) and issubclass(key_type, _SIMPLE_KEYS)

    def _resolve_class(self, cls: type) -> Any:
        if cls in self._resolved_classes:
            return self._resolved_classes[cls]
        if cls in self._resolving:
            return cls
        self._resolving.add(cls)
        try:
            resolved = self._build_class(cls)
        finally:
            self._resolving.discard(cls)
        self._resolved_classes[cls] = resolved
        return resolved

    def _build_class(self, cls: type) -> Any:
        class_fields = _class_fields(cls)
        if class_fields is None:
            return cls
        kept = [f for f in class_fields if not (self._config.exclude_transient and f.name.startswith("_"))]
        annotations = tuple(f.annotation for f in kept)
        resolved = tuple(self._resolve_type(annotation) for annotation in annotations)
        if len(kept) == len(class_fields) and _same(annotations, resolved):
            return cls
        # generated field names avoid clashes with underscores and BaseModel attributes
        names = {f"field_{i}": f.name for i, f in enumerate(kept)}
        model = create_model(
            cls.__name__,
            **{f"field_{i}": (annotation, f.info) for i, (f, annotation) in enumerate(zip(kept, resolved))}
        )
        model_adapter = TypeAdapter(model)
        def build(data):
            validated = model_adapter.validate_python(data)
            values = {name: getattr(validated, model_name) for model_name, name in names.items()}
            return cls.model_construct(**values) if issubclass(cls, BaseModel) else cls(**values)
        def dump(obj):
            values = {model_name: getattr(obj, name) for model_name, name in names.items()}
            return self._dump(model_adapter, model.model_construct(**values))
        return Annotated[Any, PlainValidator(_guarded(build, cls.__name__)), PlainSerializer(_guarded(dump, cls.__name__), return_type=Any)]

    def _resolve_type(self, type_: Any) -> Any:
        adapter = self._adapters.get(type_)
        if adapter is not None:
            return self._with_adapter(type_, adapter)
        origin = get_origin(type_)
        args = get_args(type_)
        if origin is Union or origin is types.UnionType:
            resolved = tuple(self._resolve_type(arg) for arg in args)
            return type_ if _same(args, resolved) else Union[resolved]
        if origin in _MAPPINGS and len(args) == 2 and self._config.complex_map_keys and not self._is_simple_key(args[0]):
            return self._with_pairs(*args)
        if origin in _CONTAINERS:
            resolved = tuple(self._resolve_type(arg) for arg in args)
            return type_ if _same(args, resolved) else origin[resolved]
        if isinstance(type_, type) and (is_dataclass(type_) or issubclass(type_, BaseModel)):
            return self._resolve_class(type_)
        return type_

    def _type_adapter(self, type_: Any) -> TypeAdapter:
        try:
            return self._type_adapters[type_]
        except KeyError:
            try:
                type_adapter = TypeAdapter(self._resolve_type(type_))
            except PydanticSchemaGenerationError as ex:
                raise SerializationException(f"Unsupported type {type_!r}") from ex
            self._type_adapters[type_] = type_adapter
            return type_adapter

    def to_json(self, obj: Any, type_: Any = None) -> str:
        """
        Serializes obj as type_, or as its runtime type when type_ is None.

        Raises:
            SerializationException: If obj cannot be serialized as type_.
        """
        type_adapter = self._type_adapter(type(obj) if type_ is None else type_)
        try:
            data = self._dump(type_adapter, obj)
        except ValueError as ex:
            raise SerializationException(f"Cannot serialize {type(obj).__name__}: {ex}") from ex
        indent = self._config.indent if self._config.pretty_print else None
        text = to_json(data, indent=indent).decode("utf-8")
        if self._config.escape_html:
            text = _escape_html(text)
        return text

    def from_json[T](self, text: str | bytes, type_: type[T] | Any) -> T | None:
        """
        Deserializes text as type_.

        Blank text is an empty document and gives None.

        Raises:
            SerializationException: If text is not valid JSON or does not match type_.
        """
        if not text.strip():
            return None
        type_adapter = self._type_adapter(type_)
        try:
            return type_adapter.validate_json(text)
        except ValueError as ex:
            raise SerializationException(f"Cannot deserialize {type_!r}: {ex}") from ex
