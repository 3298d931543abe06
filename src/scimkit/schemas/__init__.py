from scimkit.schemas.group import Group
from scimkit.schemas.resource_type import ResourceTypeSchema
from scimkit.schemas.service_provider_config import ServiceProviderConfigSchema
from scimkit.schemas.user import EnterpriseUser, User

__all__ = [
    "EnterpriseUser",
    "Group",
    "ResourceTypeSchema",
    "ServiceProviderConfigSchema",
    "User",
]
