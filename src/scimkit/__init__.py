from scimkit.config import ServiceProviderConfig
from scimkit.error import ScimError, ScimErrorType, UndeclaredAttributeError
from scimkit.query import QueryParams
from scimkit.registry import Registry, ResourceType

__all__ = [
    "QueryParams",
    "Registry",
    "ResourceType",
    "ScimError",
    "ScimErrorType",
    "ServiceProviderConfig",
    "UndeclaredAttributeError",
]
