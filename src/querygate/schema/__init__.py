"""Schema model rendering and discovery."""

from querygate.schema.introspection import (
    DatabaseIntrospector,
    MetadataSchemaAdapter,
    normalize_type,
)
from querygate.schema.registry import SchemaRegistry

__all__ = [
    "DatabaseIntrospector",
    "MetadataSchemaAdapter",
    "SchemaRegistry",
    "normalize_type",
]
