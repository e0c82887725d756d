"""Intent variant contracts: declaration, normalization and eager validation.

Callers describe their closed set of intents as pydantic models. Each model is
one variant: its tag is ``intent_name`` when declared, else the class name, and
its fields are the parameters Dialogflow is expected to fill in.

    class Hello(IntentModel):
        pass

    class Weather(IntentModel):
        location: str

    schema = IntentSchema(Hello, Weather)

Every check that depends only on the declarations (duplicate tags, field types
the decoder cannot produce) runs here, before any request is made.
"""

from __future__ import annotations

import enum
import keyword
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, create_model

from typed_dialogflow.core.errors import (
    DuplicateIntentError,
    SchemaError,
    UnsupportedFieldType,
)

Normalizer = Callable[[str], str]

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[\W_]+")


def to_snake_case(name: str) -> str:
    """Default intent/parameter name normalization.

    Splits camelCase boundaries, turns every run of non-alphanumerics
    (spaces, dashes, dots, underscores) into one ``_`` and lowercases:
    ``ThankYou``, ``thank-you`` and ``Thank You`` all become ``thank_you``.
    """
    name = _CAMEL_BOUNDARY_RE.sub("_", name.strip())
    return _SEPARATOR_RE.sub("_", name).strip("_").lower()


class IntentModel(BaseModel):
    """Optional base class for intent variants (immutable, extra keys ignored)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    intent_name: ClassVar[Optional[str]] = None


# ─── Compiled field types ──────────────────────────────


@dataclass(frozen=True)
class FieldType:
    kind: str  # string | integer | number | boolean | enum | list | dict | model | any
    optional: bool = False
    item: Optional[FieldType] = None
    model: Optional[type[BaseModel]] = None
    enum: Optional[type[enum.Enum]] = None
    fields: tuple[FieldSpec, ...] = ()

    @property
    def label(self) -> str:
        if self.kind == "list":
            return f"list of {self.item.label}"
        if self.kind == "dict":
            return f"object of {self.item.label}"
        if self.kind == "model":
            return f"object ({self.model.__name__})"
        if self.kind == "enum":
            return "one of " + ", ".join(repr(m.value) for m in self.enum)
        return self.kind


@dataclass(frozen=True)
class FieldSpec:
    name: str
    key: str
    type: FieldType
    required: bool


@dataclass(frozen=True)
class VariantSpec:
    tag: str
    normalized: str
    model: type[BaseModel]
    fields: tuple[FieldSpec, ...]


_SCALARS = {str: "string", int: "integer", float: "number", bool: "boolean"}


def _field_key(name: str, info) -> str:
    alias = info.validation_alias
    if isinstance(alias, str):
        return alias
    if alias is not None:
        first = alias.choices[0] if hasattr(alias, "choices") else None
        if isinstance(first, str):
            return first
    return info.alias or name


def _compile_type(annotation: Any, variant: str, field: str, seen: frozenset) -> FieldType:
    origin = typing.get_origin(annotation)

    if origin is typing.Annotated:
        return _compile_type(typing.get_args(annotation)[0], variant, field, seen)

    if annotation is Any or annotation is object or annotation is JsonValue:
        return FieldType("any")

    if origin is Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) != 1:
            raise UnsupportedFieldType(variant, field, annotation)
        inner = _compile_type(members[0], variant, field, seen)
        return FieldType(
            inner.kind,
            optional=True,
            item=inner.item,
            model=inner.model,
            enum=inner.enum,
            fields=inner.fields,
        )

    if annotation in _SCALARS:
        return FieldType(_SCALARS[annotation])

    if origin is None and isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return FieldType("enum", enum=annotation)

    if origin is list or annotation is list:
        args = typing.get_args(annotation)
        item = _compile_type(args[0] if args else Any, variant, field, seen)
        return FieldType("list", item=item)

    if origin is dict or annotation is dict:
        args = typing.get_args(annotation)
        if args and args[0] is not str:
            raise UnsupportedFieldType(variant, field, annotation)
        item = _compile_type(args[1] if args else Any, variant, field, seen)
        return FieldType("dict", item=item)

    if origin is None and isinstance(annotation, type) and issubclass(annotation, BaseModel):
        if annotation in seen:
            raise UnsupportedFieldType(variant, field, annotation)
        return FieldType(
            "model",
            model=annotation,
            fields=_compile_fields(annotation, seen | {annotation}),
        )

    raise UnsupportedFieldType(variant, field, annotation)


def _compile_fields(model: type[BaseModel], seen: frozenset) -> tuple[FieldSpec, ...]:
    specs = []
    for name, info in model.model_fields.items():
        specs.append(
            FieldSpec(
                name=name,
                key=_field_key(name, info),
                type=_compile_type(info.annotation, model.__name__, name, seen),
                required=info.is_required(),
            )
        )
    return tuple(specs)


# ─── Schema ────────────────────────────────────────────


class IntentSchema:
    """Closed set of intent variants, keyed by normalized tag.

    Register variants at import time; the schema is read-only for the
    decoder and may be shared between concurrent decodes.
    """

    def __init__(self, *variants: type[BaseModel], normalize: Normalizer = to_snake_case) -> None:
        self.normalize = normalize
        self._variants: dict[str, VariantSpec] = {}
        for variant in variants:
            self.register(variant)

    @classmethod
    def from_table(
        cls,
        table: Mapping[str, Mapping[str, Any]],
        *,
        normalize: Normalizer = to_snake_case,
    ) -> IntentSchema:
        """Build a schema from ``{tag: {parameter: type}}`` without writing classes."""
        schema = cls(normalize=normalize)
        for tag, fields in table.items():
            definitions: dict[str, Any] = {}
            for param, annotation in fields.items():
                default = None if _is_optional(annotation) else ...
                if param.isidentifier() and not keyword.iskeyword(param):
                    name, definition = param, (annotation, default)
                else:
                    name = to_snake_case(param)
                    definition = (annotation, Field(default, alias=param))
                if name in definitions:
                    raise SchemaError(
                        f"Parameters of intent {tag!r} collide on field name {name!r}"
                    )
                definitions[name] = definition
            model = create_model(_model_name(tag), __base__=IntentModel, **definitions)
            schema.register(model, tag=tag)
        return schema

    def register(self, variant: Optional[type[BaseModel]] = None, *, tag: Optional[str] = None):
        """Add a variant. Usable directly or as a class decorator."""
        if variant is None:
            return lambda cls: self.register(cls, tag=tag)

        if not (isinstance(variant, type) and issubclass(variant, BaseModel)):
            raise SchemaError(f"Intent variants must be pydantic models, got {variant!r}")

        tag = tag or getattr(variant, "intent_name", None) or variant.__name__
        normalized = self.normalize(tag)
        if not normalized:
            raise SchemaError(f"Intent tag {tag!r} normalizes to an empty name")

        existing = self._variants.get(normalized)
        if existing is not None:
            raise DuplicateIntentError(normalized, existing.tag, tag)

        self._variants[normalized] = VariantSpec(
            tag=tag,
            normalized=normalized,
            model=variant,
            fields=_compile_fields(variant, frozenset({variant})),
        )
        return variant

    def lookup(self, intent_name: str) -> Optional[VariantSpec]:
        if not intent_name:
            return None
        return self._variants.get(self.normalize(intent_name))

    def variant_for(self, intent_name: str) -> Optional[type[BaseModel]]:
        spec = self.lookup(intent_name)
        return spec.model if spec else None

    @property
    def tags(self) -> list[str]:
        return list(self._variants)

    def __contains__(self, intent_name: object) -> bool:
        return isinstance(intent_name, str) and self.lookup(intent_name) is not None

    def __iter__(self) -> Iterator[VariantSpec]:
        return iter(self._variants.values())

    def __len__(self) -> int:
        return len(self._variants)

    def __repr__(self) -> str:
        return f"IntentSchema({', '.join(self._variants)})"


def _is_optional(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return type(None) in typing.get_args(annotation)
    return False


def _model_name(tag: str) -> str:
    return "".join(part.capitalize() for part in to_snake_case(tag).split("_")) or "Intent"
