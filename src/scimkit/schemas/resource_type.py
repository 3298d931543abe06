from scimkit.data.attrs import Boolean, Complex, Reference, String
from scimkit.data.schemas import Schema, SchemaDefinition


def _definition() -> SchemaDefinition:
    definition = SchemaDefinition(
        "ResourceType",
        "urn:ietf:params:scim:schemas:core:2.0:ResourceType",
        "Specifies the schema that describes a SCIM resource type",
        [
            String(
                "name",
                direction="out",
                required=True,
                mutable=False,
                description="The resource type name, e.g. 'User'.",
            ),
            String(
                "description",
                direction="out",
                mutable=False,
                description="The resource type's human-readable description.",
            ),
            Reference(
                "endpoint",
                direction="out",
                required=True,
                mutable=False,
                reference_types=["uri"],
                description="The resource type's HTTP-addressable endpoint relative to "
                "the Base URL, e.g. '/Users'.",
            ),
            Reference(
                "schema",
                direction="out",
                required=True,
                mutable=False,
                case_exact=True,
                reference_types=["uri"],
                description="The resource type's primary/base schema URI.",
            ),
            Complex(
                "schemaExtensions",
                direction="out",
                mutable=False,
                multi_valued=True,
                uniqueness=False,
                description="A list of URIs of the resource type's schema extensions.",
                sub_attributes=[
                    Reference(
                        "schema",
                        direction="out",
                        required=True,
                        mutable=False,
                        case_exact=True,
                        reference_types=["uri"],
                        description="The URI of a schema extension.",
                    ),
                    Boolean(
                        "required",
                        direction="out",
                        required=True,
                        mutable=False,
                        description="A Boolean value that specifies whether or not the schema "
                        "extension is required for the resource type.",
                    ),
                ],
            ),
        ],
    )
    # id is presented, and may be the same as the name
    config = definition.attribute("id").config
    config.shadow = False
    config.required = False
    config.returned = True
    config.case_exact = False
    config.uniqueness = "none"
    config.description = (
        "The resource type's server unique id. May be the same as the 'name' attribute."
    )
    return definition


class ResourceTypeSchema(Schema):
    """
    ResourceType schema, identified by `urn:ietf:params:scim:schemas:core:2.0:ResourceType`
    URI, as specified in [RFC-7643, section 6](https://www.rfc-editor.org/rfc/rfc7643#section-6).

    Instances are always outbound.
    """

    definition = _definition()

    def __init__(self, data=None, basepath=None):
        super().__init__(data, "out", basepath)
