import functools
from collections.abc import Mapping
from typing import Any, Optional, Sequence, Union

from scimkit.data.utils import get_value, is_collection, is_date_like, parse_datetime
from scimkit.data.values import dump

_SORT_ORDERS = ("ascending", "descending")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def _sort_value(resource: Any, paths: list[str]) -> Any:
    value = resource
    for path in paths:
        if not isinstance(value, Mapping):
            return None
        value = get_value(value, path)
        if is_collection(value):
            primary = next(
                (
                    item
                    for item in value
                    if isinstance(item, Mapping) and get_value(item, "primary")
                ),
                None,
            )
            if primary is None and len(value):
                primary = value[0]
            value = get_value(primary, "value") if isinstance(primary, Mapping) else primary
    if value == "":
        return None
    return value


def _compare(a: Any, b: Any) -> int:
    if a is None or b is None:
        if a is None and b is None:
            return 0
        return 1 if a is None else -1
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    if is_date_like(a) and is_date_like(b):
        a, b = parse_datetime(a), parse_datetime(b)
        return (a > b) - (a < b)
    a, b = str(a), str(b)
    return (a > b) - (a < b)


class ListResponse:
    """
    SCIM ListResponse message, identified by
    `urn:ietf:params:scim:api:messages:2.0:ListResponse` URI, as specified in
    [RFC-7644, section 3.4.2](https://www.rfc-editor.org/rfc/rfc7644#section-3.4.2).

    Resources are sorted, when `sortBy` is provided, and paginated, when there are more
    resources than fit in a single page.

    Args:
        request: Resources to include in the list response, or the body of received
            ListResponse message.
        params: Sort and pagination parameters: `sortBy`, `sortOrder`, `startIndex`,
            `count`, and `itemsPerPage`. Pagination parameters are read from the message
            body instead, when the body is provided.

    Raises:
        TypeError: If the body does not specify ListResponse schema, or parameters are
            of invalid type.

    Examples:
        >>> ListResponse([user_a, user_b], {"sortBy": "name.familyName", "count": 1}).to_dict()
    """

    id = "urn:ietf:params:scim:api:messages:2.0:ListResponse"

    def __init__(
        self,
        request: Union[Sequence[Any], Mapping[str, Any], None] = None,
        params: Optional[Mapping[str, Any]] = None,
    ):
        request = [] if request is None else request
        params = params or {}
        outbound = isinstance(request, (list, tuple))
        resources = list(request) if outbound else list(request.get("Resources") or [])
        source = params if outbound else request
        sort_by = params.get("sortBy")
        sort_order = params.get("sortOrder") or "ascending"
        start_index = source.get("startIndex", 1)
        count = source.get("count", 20)
        items_per_page = source.get("itemsPerPage", count)

        if not outbound:
            schemas = request.get("schemas")
            if isinstance(schemas, (list, tuple)) and list(schemas) != [self.id]:
                raise TypeError(
                    "ListResponse request body messages must exclusively specify schema "
                    f"as '{self.id}'"
                )
        if not all(_is_number(value) for value in (start_index, items_per_page)):
            raise TypeError(
                "Expected 'startIndex' and 'itemsPerPage' parameters to be numbers "
                "in ListResponse message constructor"
            )
        if sort_by is not None and not isinstance(sort_by, str):
            raise TypeError(
                "Expected 'sortBy' parameter to be a string in ListResponse message constructor"
            )
        if sort_by is not None and sort_order not in _SORT_ORDERS:
            raise TypeError(
                "Expected 'sortOrder' parameter to be either 'ascending' or 'descending' "
                "in ListResponse message constructor"
            )

        self.total_results = len(resources)
        self.start_index = start_index
        self.items_per_page = items_per_page
        self.resources = [resource for resource in resources if resource]

        if sort_by is not None:
            paths = sort_by.split(".")
            self.resources.sort(
                key=functools.cmp_to_key(
                    lambda a, b: _compare(_sort_value(a, paths), _sort_value(b, paths))
                )
            )
            if sort_order == "descending":
                self.resources.reverse()

        if len(self.resources) > items_per_page:
            offset = max(int(start_index) - 1, 0)
            self.resources = self.resources[offset : offset + int(items_per_page)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemas": [self.id],
            "totalResults": self.total_results,
            "Resources": [
                resource.to_dict() if hasattr(resource, "to_dict") else dump(resource)
                for resource in self.resources
            ],
            "startIndex": self.start_index,
            "itemsPerPage": self.items_per_page,
        }
