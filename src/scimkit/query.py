import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from scimkit.data.filter import Filter
from scimkit.error import ScimError, ScimErrorType

logger = logging.getLogger(__name__)

_SORT_ORDERS = ("ascending", "descending")


def _split_attributes(value: Any, name: str) -> list[str]:
    if not isinstance(value, str):
        raise ScimError(
            400,
            ScimErrorType.INVALID_FILTER,
            f"Expected {name} to be a comma-separated list string",
        )
    return [item.strip() for item in value.split(",") if item.strip()]


def _to_int(value: Any, name: str) -> int:
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ScimError(
        400, ScimErrorType.INVALID_VALUE, f"Expected {name} to be an integer value"
    )


@dataclass(frozen=True)
class QueryParams:
    """
    Query parameters of resource retrieval, as specified in
    [RFC-7644, section 3.4.2](https://www.rfc-editor.org/rfc/rfc7644#section-3.4.2).

    Attributes:
        filter: Filter that retrieved resources must match.
        attributes: Filter that selects attributes to return, consisting of `pr`
            comparisons for `attributes`, or `np` comparisons for `excludedAttributes`.
        constraints: Sort and pagination parameters, suitable for `ListResponse`.
    """

    filter: Optional[Filter] = None
    attributes: Optional[Filter] = None
    constraints: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, params: Any, definition: Any = None) -> "QueryParams":
        """
        Parses query parameters received with the request.

        Args:
            params: Query parameters, e.g. `{"filter": 'userName eq "Test"', "count": "10"}`.
            definition: Schema definition the filter is evaluated against.

        Raises:
            ScimError: If any of the parameters is of invalid type, or the filter
                is not valid.

        Examples:
            >>> QueryParams.parse({"attributes": "userName, emails"}).attributes
            [{'userName': ['pr'], 'emails': ['pr']}]
        """
        if not isinstance(params, Mapping):
            raise ScimError(
                400,
                ScimErrorType.INVALID_SYNTAX,
                "Expected query parameters to be a single complex object value",
            )

        filter_ = None
        if "id" in params:
            resource_id = params["id"]
            if not isinstance(resource_id, str) or not resource_id:
                raise ScimError(
                    400, ScimErrorType.INVALID_VALUE, "Expected id to be a non-empty string"
                )
            escaped = resource_id.replace("\\", "\\\\").replace('"', '\\"')
            filter_ = Filter(f'id eq "{escaped}"', definition)
        elif "filter" in params:
            expression = params["filter"]
            if not isinstance(expression, str) or not expression.strip():
                raise ScimError(
                    400, ScimErrorType.INVALID_FILTER, "Expected filter to be a non-empty string"
                )
            filter_ = Filter(expression, definition)

        attributes = None
        if "attributes" in params:
            names = _split_attributes(params["attributes"], "attributes")
            if names:
                attributes = Filter(" and ".join(f"{name} pr" for name in names), definition)
        elif "excludedAttributes" in params:
            names = _split_attributes(params["excludedAttributes"], "excludedAttributes")
            if names:
                attributes = Filter(" and ".join(f"{name} np" for name in names), definition)

        constraints: dict[str, Any] = {}
        if params.get("sortBy") is not None:
            if not isinstance(params["sortBy"], str):
                raise ScimError(
                    400, ScimErrorType.INVALID_VALUE, "Expected sortBy to be a string value"
                )
            constraints["sortBy"] = params["sortBy"]
        if params.get("sortOrder") is not None:
            if params["sortOrder"] not in _SORT_ORDERS:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_VALUE,
                    "Expected sortOrder to be either 'ascending' or 'descending'",
                )
            constraints["sortOrder"] = params["sortOrder"]
        for name in ("startIndex", "count"):
            if params.get(name) is not None:
                constraints[name] = _to_int(params[name], name)

        logger.debug(
            "Parsed query parameters: filter=%r, attributes=%r, constraints=%r",
            filter_,
            attributes,
            constraints,
        )
        return cls(filter=filter_, attributes=attributes, constraints=constraints)
