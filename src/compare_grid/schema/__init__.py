from .fields import FIELD_TYPES, FieldSchema, FieldType, GridSchema, SchemaError

__all__ = [
    "FIELD_TYPES",
    "FieldSchema",
    "FieldType",
    "GridSchema",
    "SchemaError",
]
