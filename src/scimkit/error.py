from enum import Enum
from typing import Any, Optional, TypeVar, Union


class ScimErrorType(str, Enum):
    INVALID_FILTER = "invalidFilter"
    TOO_MANY = "tooMany"
    UNIQUENESS = "uniqueness"
    MUTABILITY = "mutability"
    INVALID_SYNTAX = "invalidSyntax"
    INVALID_PATH = "invalidPath"
    NO_TARGET = "noTarget"
    INVALID_VALUE = "invalidValue"
    INVALID_VERS = "invalidVers"
    SENSITIVE = "sensitive"

    def __str__(self) -> str:
        return self.value


INVALID_FILTER = {
    "status": "400",
    "scimType": ScimErrorType.INVALID_FILTER,
    "detail": (
        "The specified filter syntax is invalid, "
        "or the specified attribute and filter comparison combination is not supported."
    ),
}


TOO_MANY = {
    "status": "413",
    "scimType": ScimErrorType.TOO_MANY,
    "detail": (
        "The specified filter yields many more results than the server is willing to calculate "
        "or process."
    ),
}


UNIQUENESS = {
    "status": "409",
    "scimType": ScimErrorType.UNIQUENESS,
    "detail": "One or more of the attribute values are already in use or are reserved.",
}


MUTABILITY = {
    "status": "400",
    "scimType": ScimErrorType.MUTABILITY,
    "detail": (
        "The attempted modification is not compatible with the target attribute's mutability "
        "or current state."
    ),
}


INVALID_SYNTAX = {
    "status": "400",
    "scimType": ScimErrorType.INVALID_SYNTAX,
    "detail": (
        "The request body message structure was invalid or did not conform to the request schema."
    ),
}


INVALID_PATH = {
    "status": "400",
    "scimType": ScimErrorType.INVALID_PATH,
    "detail": "The 'path' attribute was invalid or malformed.",
}


NO_TARGET = {
    "status": "400",
    "scimType": ScimErrorType.NO_TARGET,
    "detail": (
        "The specified 'path' did not yield an attribute or attribute value "
        "that could be operated on."
    ),
}


INVALID_VALUE = {
    "status": "400",
    "scimType": ScimErrorType.INVALID_VALUE,
    "detail": (
        "A required value was missing, or the value specified was not compatible "
        "with the operation or attribute type, or resource schema."
    ),
}


INVALID_VERS = {
    "status": "400",
    "scimType": ScimErrorType.INVALID_VERS,
    "detail": "The specified SCIM protocol version is not supported.",
}


SENSITIVE = {
    "status": "400",
    "scimType": ScimErrorType.SENSITIVE,
    "detail": (
        "The specified request cannot be completed, "
        "due to the passing of sensitive information in a request URI."
    ),
}


DETAIL_BY_TYPE = {
    item["scimType"]: item
    for item in [
        INVALID_FILTER,
        TOO_MANY,
        UNIQUENESS,
        MUTABILITY,
        INVALID_SYNTAX,
        INVALID_PATH,
        NO_TARGET,
        INVALID_VALUE,
        INVALID_VERS,
        SENSITIVE,
    ]
}


class ScimError(Exception):
    """
    Protocol-level error, raised where user-supplied data fails validation.

    Enclosing layers append context to `message` (operation index, schema extension)
    before re-raising, see `extend_message`.

    Args:
        status: HTTP status code of the error.
        scim_type: SCIM detail error keyword, as specified in
            [RFC-7644, section 3.12](https://www.rfc-editor.org/rfc/rfc7644#section-3.12).
        message: Human-readable description of the problem. If not provided, the default
            detail for the `scim_type` is used.
    """

    def __init__(
        self,
        status: int,
        scim_type: Optional[Union[str, ScimErrorType]] = None,
        message: Optional[str] = None,
    ):
        self.status = int(status)
        self.scim_type = ScimErrorType(scim_type) if scim_type else None
        if message is None:
            message = DETAIL_BY_TYPE[self.scim_type]["detail"] if self.scim_type else ""
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.status}, {self.scim_type!r}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Returns the error as SCIM `Error` message body."""
        from scimkit.messages.error import ErrorMessage

        return ErrorMessage(self).to_dict()


class UndeclaredAttributeError(KeyError, TypeError):
    """
    Raised when a value is written to, or read from, a name that the target
    (a complex value, or a schema instance) does not declare.

    Args:
        name: The offending attribute name.
        message: Human-readable description of the problem.
    """

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name
        self.message = message

    def __str__(self) -> str:
        return self.message


_E = TypeVar("_E", bound=Exception)


def extend_message(ex: _E, suffix: str) -> _E:
    """
    Appends `suffix` to the exception's message, so it can be re-raised with more context.
    """
    message = f"{ex}{suffix}"
    if isinstance(ex, (ScimError, UndeclaredAttributeError)):
        ex.message = message
    ex.args = (message, *ex.args[1:])
    return ex
