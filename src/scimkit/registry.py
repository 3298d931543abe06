import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from scimkit.config import ServiceProviderConfig
from scimkit.data.schemas import Schema, SchemaDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceType:
    """
    Resource type served by the service provider, e.g. `User` at `/Users` endpoint.
    """

    name: str
    endpoint: str
    schema: SchemaDefinition
    description: str = ""

    def describe(self, basepath: Optional[str] = None) -> dict[str, Any]:
        """
        Returns the resource type as `ResourceType` resource, as specified in RFC-7643,
        section 6. Schema extensions bound anywhere below the resource schema are listed.
        """
        from scimkit.schemas.resource_type import ResourceTypeSchema

        data: dict[str, Any] = {
            "id": self.name,
            "name": self.name,
            "endpoint": self.endpoint,
            "description": self.description,
            "schema": self.schema.id,
        }
        extensions = [
            {"schema": binding.id, "required": binding.required}
            for binding in self.schema.extensions
        ]
        if extensions:
            data["schemaExtensions"] = extensions
        return ResourceTypeSchema(data, basepath).to_dict()


@dataclass
class Registry:
    """
    Declared schemas and resource types, together with the service provider configuration.
    Created once by the application at startup, and passed where needed.

    Schema names and ids are kept one-to-one: a name can not be declared for two different
    schemas, and a schema can not be declared under two different names.

    Examples:
        >>> registry = Registry()
        >>> registry.declare_resource_type("User", "/Users", User)
        >>> registry.schema("urn:ietf:params:scim:schemas:core:2.0:User")
        SchemaDefinition(urn:ietf:params:scim:schemas:core:2.0:User)
    """

    service_provider_config: ServiceProviderConfig = field(
        default_factory=ServiceProviderConfig.create
    )
    _schemas: dict[str, SchemaDefinition] = field(default_factory=dict, init=False, repr=False)
    _resource_types: dict[str, ResourceType] = field(
        default_factory=dict, init=False, repr=False
    )

    @staticmethod
    def _definition(schema: Union[SchemaDefinition, type[Schema]]) -> SchemaDefinition:
        if isinstance(schema, type) and issubclass(schema, Schema):
            return schema.definition
        if not isinstance(schema, SchemaDefinition):
            raise TypeError(
                "Expected 'schema' to be a SchemaDefinition instance or a Schema class"
            )
        return schema

    def declare_schema(
        self,
        schema: Union[SchemaDefinition, type[Schema]],
        name: Optional[str] = None,
    ) -> SchemaDefinition:
        """
        Declares the schema, and schema extensions bound to it.

        Args:
            schema: Schema definition, or schema class, to declare.
            name: Name to declare the schema under, defaults to the schema's name.

        Raises:
            TypeError: If the name is already declared for different schema, or the schema
                is already declared under different name.
        """
        definition = self._definition(schema)
        name = name or definition.name
        existing = self._schemas.get(name)
        if existing is not None and existing.id != definition.id:
            raise TypeError(f"Schema definition '{name}' already declared with id '{existing.id}'")
        for declared_name, declared in self._schemas.items():
            if declared.id == definition.id and declared_name != name:
                raise TypeError(
                    f"Schema definition '{definition.id}' already declared with name "
                    f"'{declared_name}'"
                )

        if existing is None:
            self._schemas[name] = definition
            logger.debug("Declared schema %r as %r", definition.id, name)
        for binding in definition.extensions:
            self.declare_schema(binding.definition)
        return definition

    def schema(self, name_or_id: str) -> Optional[SchemaDefinition]:
        """Returns declared schema by its name or id, ignoring case."""
        lowered = name_or_id.lower()
        for name, definition in self._schemas.items():
            if lowered in (name.lower(), definition.id.lower()):
                return definition
        return None

    def schemas(self) -> list[SchemaDefinition]:
        return list(self._schemas.values())

    def declare_resource_type(
        self,
        name: str,
        endpoint: str,
        schema: Union[SchemaDefinition, type[Schema]],
        description: str = "",
    ) -> ResourceType:
        """
        Declares the resource type, and its schema.

        Raises:
            TypeError: If the name, or the endpoint, is already declared for different
                resource type.
        """
        definition = self._definition(schema)
        resource_type = ResourceType(name, endpoint, definition, description)
        existing = self._resource_types.get(name)
        if existing is not None:
            if existing == resource_type:
                return existing
            raise TypeError(f"Resource type '{name}' already declared")
        for declared in self._resource_types.values():
            if declared.endpoint == endpoint:
                raise TypeError(
                    f"Endpoint '{endpoint}' already declared for resource type '{declared.name}'"
                )

        self.declare_schema(definition)
        self._resource_types[name] = resource_type
        logger.debug("Declared resource type %r at %r", name, endpoint)
        return resource_type

    def resource_type(self, name: str) -> Optional[ResourceType]:
        lowered = name.lower()
        return next(
            (item for key, item in self._resource_types.items() if key.lower() == lowered), None
        )

    def resource_types(self) -> list[ResourceType]:
        return list(self._resource_types.values())
