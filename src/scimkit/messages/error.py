from collections.abc import Mapping
from typing import Any, Optional, Union

from scimkit.error import ScimError, ScimErrorType

VALID_STATUS_CODES = (307, 308, 400, 401, 403, 404, 409, 412, 413, 500, 501)

_STATUS_BY_SCIM_TYPE = {
    ScimErrorType.UNIQUENESS: 409,
    ScimErrorType.TOO_MANY: 413,
}


class ErrorMessage:
    """
    SCIM Error message, identified by `urn:ietf:params:scim:api:messages:2.0:Error` URI,
    as specified in [RFC-7644, section 3.12](https://www.rfc-editor.org/rfc/rfc7644#section-3.12).

    Args:
        error: The exception to build the message from. Exceptions other than `ScimError`
            result in `500` status.
        status: HTTP status code, used if `error` is not provided.
        scim_type: SCIM detail error keyword, used if `error` is not provided.
        detail: Human-readable description of the problem, used if `error` is not provided.

    Raises:
        TypeError: If the status code is not valid for SCIM error, or the detail error keyword
            is unknown or does not match the status code.
    """

    id = "urn:ietf:params:scim:api:messages:2.0:Error"

    def __init__(
        self,
        error: Optional[Exception] = None,
        *,
        status: Union[int, str] = 500,
        scim_type: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        if isinstance(error, ScimError):
            status, scim_type, detail = error.status, error.scim_type, error.message
        elif error is not None:
            status, scim_type, detail = 500, None, str(error)

        try:
            status_code = int(status)
        except (TypeError, ValueError):
            status_code = None
        if status_code not in VALID_STATUS_CODES:
            raise TypeError(
                f"Incompatible HTTP status code '{status}' supplied to "
                "SCIM Error Message constructor"
            )
        if scim_type:
            try:
                scim_type = ScimErrorType(scim_type)
            except ValueError:
                raise TypeError(
                    f"Unknown detail error keyword '{scim_type}' supplied to "
                    "SCIM Error Message constructor"
                )
            expected = _STATUS_BY_SCIM_TYPE.get(scim_type, 400)
            if status_code != expected:
                raise TypeError(
                    f"HTTP status code must be '{expected}' when detail error keyword "
                    f"'{scim_type}' supplied to SCIM Error Message constructor"
                )

        self.status = status_code
        self.scim_type: Optional[ScimErrorType] = scim_type or None
        self.detail = detail

    @classmethod
    def parse(cls, body: Mapping[str, Any]) -> "ErrorMessage":
        """
        Builds the message from SCIM Error message body.

        Raises:
            TypeError: If the body is not SCIM Error message.
        """
        schemas = body.get("schemas") if isinstance(body, Mapping) else None
        if not isinstance(schemas, (list, tuple)) or cls.id not in schemas:
            raise TypeError(f"Expected SCIM Error message body with schema '{cls.id}'")
        return cls(
            status=body.get("status", 500),
            scim_type=body.get("scimType"),
            detail=body.get("detail"),
        )

    def to_exception(self) -> ScimError:
        """Returns the message as `ScimError`, so it can be re-raised."""
        return ScimError(self.status, self.scim_type, self.detail)

    def to_dict(self) -> dict[str, Any]:
        output: dict[str, Any] = {"schemas": [self.id], "status": str(self.status)}
        if self.scim_type:
            output["scimType"] = self.scim_type.value
        if self.detail is not None:
            output["detail"] = self.detail
        return output
