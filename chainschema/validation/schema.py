"""Schema Factory

Entry point for building schemas. Every call returns a fresh builder, so
schemas never share rule lists.

Usage:
    from chainschema import schema, ref

    signup = schema.object({
        "username": schema.string().trim().required().token(),
        "password": schema.string().required().min(8),
        "confirm": schema.string().required().custom(
            lambda value, siblings: value == siblings.get("password")
        ),
        "tags": schema.array().single().items(schema.string().lowercase()).unique(),
    }, abort_early=False)
"""
from __future__ import annotations

from typing import Any, Mapping

from .field import FieldValidator
from .object import ObjectOptions, ObjectValidator
from .rules import SchemaType


class SchemaFactory:
    """Namespace of schema constructors, exposed as `schema`."""

    @staticmethod
    def string() -> FieldValidator: return FieldValidator(SchemaType.STRING)

    @staticmethod
    def number() -> FieldValidator: return FieldValidator(SchemaType.NUMBER)

    @staticmethod
    def boolean() -> FieldValidator: return FieldValidator(SchemaType.BOOLEAN)

    @staticmethod
    def array() -> FieldValidator: return FieldValidator(SchemaType.ARRAY)

    @staticmethod
    def date() -> FieldValidator: return FieldValidator(SchemaType.DATE)

    @staticmethod
    def any() -> FieldValidator: return FieldValidator(SchemaType.ANY)

    @staticmethod
    def object(
        fields: Mapping[str, FieldValidator],
        options: ObjectOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> ObjectValidator:
        """Record schema. Options: abort_early (default True), strip_unknown (default False)."""
        return ObjectValidator(fields, options, **overrides)


schema = SchemaFactory()
