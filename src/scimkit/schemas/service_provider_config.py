from scimkit.data.attrs import Boolean, Complex, Integer, Reference, String
from scimkit.data.schemas import Schema, SchemaDefinition

_SUPPORTED_DESCRIPTION = "A Boolean value specifying whether or not the operation is supported."


def _option(name: str, description: str, *extra) -> Complex:
    return Complex(
        name,
        required=True,
        mutable=False,
        uniqueness=False,
        description=description,
        sub_attributes=[
            Boolean("supported", required=True, mutable=False, description=_SUPPORTED_DESCRIPTION),
            *extra,
        ],
    )


class ServiceProviderConfigSchema(Schema):
    """
    ServiceProviderConfig schema, identified by
    `urn:ietf:params:scim:schemas:core:2.0:ServiceProviderConfig` URI, as specified in
    [RFC-7643, section 5](https://www.rfc-editor.org/rfc/rfc7643#section-5).

    The schema has no `id` attribute, and instances are always outbound.
    """

    definition = SchemaDefinition(
        "ServiceProviderConfig",
        "urn:ietf:params:scim:schemas:core:2.0:ServiceProviderConfig",
        "Schema for representing the service provider's configuration",
        [
            Reference(
                "documentationUri",
                mutable=False,
                reference_types=["external"],
                description="An HTTP-addressable URL pointing to the service provider's "
                "human-consumable help documentation.",
            ),
            _option("patch", "A complex type that specifies PATCH configuration options."),
            _option(
                "bulk",
                "A complex type that specifies bulk configuration options.",
                Integer(
                    "maxOperations",
                    required=True,
                    mutable=False,
                    description="An integer value specifying the maximum number of operations.",
                ),
                Integer(
                    "maxPayloadSize",
                    required=True,
                    mutable=False,
                    description="An integer value specifying the maximum payload size in bytes.",
                ),
            ),
            _option(
                "filter",
                "A complex type that specifies FILTER options.",
                Integer(
                    "maxResults",
                    required=True,
                    mutable=False,
                    description="An integer value specifying the maximum number of resources "
                    "returned in a response.",
                ),
            ),
            _option(
                "changePassword",
                "A complex type that specifies configuration options related to changing "
                "a password.",
            ),
            _option("sort", "A complex type that specifies sort result options."),
            _option("etag", "A complex type that specifies ETag configuration options."),
            Complex(
                "authenticationSchemes",
                required=True,
                mutable=False,
                multi_valued=True,
                uniqueness=False,
                description="A complex type that specifies supported authentication scheme "
                "properties.",
                sub_attributes=[
                    String(
                        "type",
                        required=True,
                        mutable=False,
                        canonical_values=[
                            "oauth",
                            "oauth2",
                            "oauthbearertoken",
                            "httpbasic",
                            "httpdigest",
                        ],
                        description="The authentication scheme.",
                    ),
                    String(
                        "name",
                        required=True,
                        mutable=False,
                        description="The common authentication scheme name, e.g. HTTP Basic.",
                    ),
                    String(
                        "description",
                        required=True,
                        mutable=False,
                        description="A description of the authentication scheme.",
                    ),
                    Reference(
                        "specUri",
                        mutable=False,
                        reference_types=["external"],
                        description="An HTTP-addressable URL pointing to the authentication "
                        "scheme's specification.",
                    ),
                    Reference(
                        "documentationUri",
                        mutable=False,
                        reference_types=["external"],
                        description="An HTTP-addressable URL pointing to the authentication "
                        "scheme's usage documentation.",
                    ),
                ],
            ),
        ],
    ).truncate("id")

    def __init__(self, data=None, basepath=None):
        super().__init__(data, "out", basepath)
