from enum import Enum


class SCIMType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "dateTime"
    REFERENCE = "reference"
    COMPLEX = "complex"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value})"


class Direction(str, Enum):
    """
    Flow an attribute, or a coercion, participates in. Attributes with direction `both`
    take part in every coercion; otherwise the directions must match exactly.
    """

    IN = "in"
    OUT = "out"
    BOTH = "both"

    def __str__(self) -> str:
        return self.value


SCHEMA_URN_PREFIX = "urn:ietf:params:scim:schemas:"
