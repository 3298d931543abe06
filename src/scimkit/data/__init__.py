from scimkit.data.attrs import (
    Attribute,
    AttributeConfig,
    AttributeMutability,
    AttributeReturn,
    AttributeUniqueness,
    Attrs,
    Binary,
    Boolean,
    Complex,
    DateTime,
    Decimal,
    Integer,
    Reference,
    String,
    create_attribute,
)
from scimkit.data.filter import Filter, is_excluded_attributes_filter
from scimkit.data.schemas import ExtensionBinding, Schema, SchemaDefinition
from scimkit.data.values import ComplexValue, MultiValue

__all__ = [
    "Attribute",
    "AttributeConfig",
    "AttributeMutability",
    "AttributeReturn",
    "AttributeUniqueness",
    "Attrs",
    "Binary",
    "Boolean",
    "Complex",
    "ComplexValue",
    "DateTime",
    "Decimal",
    "ExtensionBinding",
    "Filter",
    "Integer",
    "MultiValue",
    "Reference",
    "Schema",
    "SchemaDefinition",
    "String",
    "create_attribute",
    "is_excluded_attributes_filter",
]
