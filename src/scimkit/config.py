from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class GenericOption:
    supported: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"supported": self.supported}


@dataclass(frozen=True)
class BulkOption(GenericOption):
    max_operations: Optional[int] = None
    max_payload_size: Optional[int] = None

    def __post_init__(self):
        if self.supported and not all([self.max_payload_size, self.max_operations]):
            raise ValueError(
                "'max_payload_size' and 'max_operations' must be specified "
                "if bulk operations are supported"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "supported": self.supported,
            "maxOperations": self.max_operations or 0,
            "maxPayloadSize": self.max_payload_size or 0,
        }


@dataclass(frozen=True)
class FilterOption(GenericOption):
    max_results: Optional[int] = None

    def __post_init__(self):
        if self.supported and not self.max_results:
            raise ValueError("'max_results' must be specified if filtering is supported")

    def to_dict(self) -> dict[str, Any]:
        return {"supported": self.supported, "maxResults": self.max_results or 0}


@dataclass(frozen=True)
class AuthenticationScheme:
    type: str
    name: str
    description: str
    spec_uri: Optional[str] = None
    documentation_uri: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        output = {"type": self.type, "name": self.name, "description": self.description}
        if self.spec_uri:
            output["specUri"] = self.spec_uri
        if self.documentation_uri:
            output["documentationUri"] = self.documentation_uri
        return output


@dataclass(frozen=True)
class ServiceProviderConfig:
    """
    Service provider configuration. Available fields as defined in
    [RFC-7643](https://www.rfc-editor.org/rfc/rfc7643#section-5).

    The configuration is held by `Registry` and passed where needed.
    """

    documentation_uri: str = ""
    patch: GenericOption = field(default_factory=GenericOption)
    bulk: BulkOption = field(default_factory=BulkOption)
    filter: FilterOption = field(default_factory=FilterOption)
    change_password: GenericOption = field(default_factory=GenericOption)
    sort: GenericOption = field(default_factory=GenericOption)
    etag: GenericOption = field(default_factory=GenericOption)
    authentication_schemes: tuple[AuthenticationScheme, ...] = ()

    @classmethod
    def create(
        cls,
        documentation_uri: str = "",
        patch: Optional[dict[str, Any]] = None,
        bulk: Optional[dict[str, Any]] = None,
        filter_: Optional[dict[str, Any]] = None,
        change_password: Optional[dict[str, Any]] = None,
        sort: Optional[dict[str, Any]] = None,
        etag: Optional[dict[str, Any]] = None,
        authentication_schemes: Optional[list[dict[str, Any]]] = None,
    ) -> "ServiceProviderConfig":
        """
        Creates `ServiceProviderConfig` with all values defaulted, so operations are not supported
        by default.

        Raises:
            ValueError: If bulk operations or filtering are supported, but their limits
                are not specified.
        """
        return cls(
            documentation_uri=documentation_uri,
            patch=GenericOption(**(patch or {})),
            bulk=BulkOption(**(bulk or {})),
            filter=FilterOption(**(filter_ or {})),
            change_password=GenericOption(**(change_password or {})),
            sort=GenericOption(**(sort or {})),
            etag=GenericOption(**(etag or {})),
            authentication_schemes=tuple(
                AuthenticationScheme(**item) for item in authentication_schemes or []
            ),
        )

    def to_dict(self, basepath: Optional[str] = None) -> dict[str, Any]:
        """
        Returns the configuration as `ServiceProviderConfig` resource.
        """
        from scimkit.schemas.service_provider_config import ServiceProviderConfigSchema

        data = {
            "documentationUri": self.documentation_uri or None,
            "patch": self.patch.to_dict(),
            "bulk": self.bulk.to_dict(),
            "filter": self.filter.to_dict(),
            "changePassword": self.change_password.to_dict(),
            "sort": self.sort.to_dict(),
            "etag": self.etag.to_dict(),
            "authenticationSchemes": [scheme.to_dict() for scheme in self.authentication_schemes],
        }
        return ServiceProviderConfigSchema(data, basepath).to_dict()
