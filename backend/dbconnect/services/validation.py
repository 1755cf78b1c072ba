"""
Document validation against a collection schema.

Validates field membership, value types and required fields, and reports
which fields need a uniqueness check against the live collection.
Supported types: String, Number, Date, Boolean, Array, Object, Null.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from dbconnect.core.errors import FieldRequired, FieldUnknown, TypeMismatch
from dbconnect.models.schema import FieldType, SchemaDescriptor

# BSON integers are signed 64-bit
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


@dataclass
class ValidationResult:
    """Outcome of a successful document check."""

    unique_fields: list[str] = field(default_factory=list)


def type_matches(expected: FieldType, value: Any) -> bool:
    """Check a value's runtime type against a schema type. No coercion."""
    if expected == FieldType.STRING:
        return isinstance(value, str)
    if expected == FieldType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return isinstance(value, float) or _INT64_MIN <= value <= _INT64_MAX
    if expected == FieldType.DATE:
        return isinstance(value, datetime)
    if expected == FieldType.BOOLEAN:
        return isinstance(value, bool)
    if expected == FieldType.ARRAY:
        return isinstance(value, (list, tuple))
    if expected == FieldType.OBJECT:
        return isinstance(value, dict)
    if expected == FieldType.NULL:
        return value is None
    return False


def describe_type(value: Any) -> str:
    """Schema-style name of a value's runtime type."""
    if value is None:
        return FieldType.NULL.value
    if isinstance(value, bool):
        return FieldType.BOOLEAN.value
    if isinstance(value, (int, float)):
        return FieldType.NUMBER.value
    if isinstance(value, str):
        return FieldType.STRING.value
    if isinstance(value, datetime):
        return FieldType.DATE.value
    if isinstance(value, (list, tuple)):
        return FieldType.ARRAY.value
    if isinstance(value, dict):
        return FieldType.OBJECT.value
    return type(value).__name__


def check_document(
    descriptor: SchemaDescriptor,
    document: Mapping[str, Any],
    partial: bool = False,
) -> ValidationResult:
    """
    Validate a document (or a patch, with ``partial=True``) against a schema.

    Args:
        descriptor: Schema of the target collection
        document: Field name to value mapping
        partial: Skip the required-field check (updates)

    Returns:
        ValidationResult listing the unique fields present in the document

    Raises:
        FieldUnknown: If a key is not declared in the schema
        TypeMismatch: If a value does not match its declared type
        FieldRequired: If a required field is missing and ``partial`` is False
    """
    unique_fields = []

    for key, value in document.items():
        spec = descriptor.fields.get(key)
        if spec is None:
            raise FieldUnknown(key)

        if not type_matches(spec.type, value):
            raise TypeMismatch(key, spec.type.value, describe_type(value))

        if spec.unique:
            unique_fields.append(key)

    if not partial:
        for name in descriptor.required_fields:
            if name not in document:
                raise FieldRequired(name)

    return ValidationResult(unique_fields=unique_fields)


def parse_timestamp(field_name: str, value: Any) -> Any:
    """
    Normalize a date-like string into an aware datetime.

    Datetimes pass through (naive ones are taken as UTC); other values are
    returned unchanged for ``check_document`` to judge.

    Raises:
        TypeMismatch: If ``value`` is a string that is not an ISO 8601 date
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise TypeMismatch(field_name, FieldType.DATE.value, FieldType.STRING.value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return value
