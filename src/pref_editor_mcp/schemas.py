"""
Request schemas for the Pref-Editor tools.

Every tool validates its arguments against exactly one schema. Schemas are
pydantic models with strict string fields and camelCase wire names. Fields a
schema does not declare are kept (extra="allow") so callers can pass extra
connection options through to the backend untouched.

Base shapes grow by extension:

    DeviceSchema {deviceId} -> AppSchema {+appId} -> FileSchema {+filename}
    NameSchema {name} -> PrefSchema {+value} -> TypedPrefSchema {+type}

Tool schemas are built with compose(), which takes the union of the given
schemas' fields; when two schemas declare the same field the later one wins.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic import ValidationError as PydanticValidationError

from pref_editor_mcp.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound="Schema")


class Schema(BaseModel):
    """Base class for tool argument schemas."""

    model_config = ConfigDict(extra="allow", strict=True)


class EmptySchema(Schema):
    """Schema for tools that take no arguments."""


# =============================================================================
# Connection coordinates
# =============================================================================


class DeviceSchema(Schema):
    """Identifies a device by serial number."""

    device_id: str = Field(
        alias="deviceId",
        min_length=1,
        description="The device's serial number.",
    )


class AppSchema(DeviceSchema):
    """Identifies an installed app on a device."""

    app_id: str = Field(
        alias="appId",
        min_length=1,
        description="The application's package name.",
    )


class FileSchema(AppSchema):
    """Identifies a preference file within an app."""

    filename: str = Field(
        min_length=1,
        description="The filename with or without the extension.",
    )


# =============================================================================
# Preference payloads
# =============================================================================


class NameSchema(Schema):
    """The key of a single preference."""

    name: str = Field(description="The name/key of the user preference")


class PrefSchema(NameSchema):
    """A preference key with a new value."""

    value: str = Field(description="The value of user preference")


class TypedPrefSchema(PrefSchema):
    """A preference key, value and type name."""

    type: str = Field(
        description=(
            "The type of the preference value: "
            "integer, boolean, float, double, long or string"
        ),
    )


# =============================================================================
# Composition
# =============================================================================


def compose(name: str, *schemas: type[Schema], doc: str | None = None) -> type[Schema]:
    """
    Build a schema whose fields are the union of the given schemas' fields.

    Fields are merged left to right; a field declared by a later schema
    replaces one of the same name declared earlier.

    Args:
        name: Class name of the new schema.
        *schemas: Schemas to merge, lowest precedence first.
        doc: Optional docstring for the new schema.

    Returns:
        A new Schema subclass.

    Example:
        >>> AddPrefSchema = compose("AddPrefSchema", TypedPrefSchema, FileSchema)
        >>> sorted(AddPrefSchema.model_fields)
        ['app_id', 'device_id', 'filename', 'name', 'type', 'value']
    """
    fields: dict[str, Any] = {}
    for schema in schemas:
        for field_name, info in schema.model_fields.items():
            fields[field_name] = (info.annotation, info)
    return create_model(
        name,
        __base__=Schema,
        __doc__=doc,
        __module__=__name__,
        **fields,
    )


AddPrefSchema = compose(
    "AddPrefSchema",
    TypedPrefSchema,
    FileSchema,
    doc="Arguments of add_preference.",
)

EditPrefSchema = compose(
    "EditPrefSchema",
    PrefSchema,
    FileSchema,
    doc="Arguments of change_preference.",
)

DeletePrefSchema = compose(
    "DeletePrefSchema",
    NameSchema,
    FileSchema,
    doc="Arguments of delete_preference.",
)


# =============================================================================
# Validation
# =============================================================================


def _describe(error: Mapping[str, Any]) -> str:
    """Render one pydantic error as "<field>: <reason>"."""
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


def validate(data: Any, schema: type[SchemaT]) -> SchemaT:
    """
    Validate tool arguments against a schema.

    Every failing field is reported, not just the first one.

    Args:
        data: Raw tool arguments.
        schema: Schema to validate against.

    Returns:
        The validated schema instance (undeclared fields included).

    Raises:
        ValidationError: If the arguments do not satisfy the schema.

    Example:
        >>> validate({"deviceId": "emulator-5554"}, AppSchema)
        Traceback (most recent call last):
        ...
        pref_editor_mcp.errors.ValidationError: Invalid input: appId: Field required
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            [f"Input should be an object, received {type(data).__name__}"]
        )

    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError([_describe(err) for err in e.errors()]) from e


def input_schema(schema: type[Schema]) -> dict[str, Any]:
    """
    Return the JSON Schema advertised for a tool in tools/list.

    Args:
        schema: Tool argument schema.

    Returns:
        JSON Schema dictionary using the wire (camelCase) field names.
    """
    return schema.model_json_schema(by_alias=True)
