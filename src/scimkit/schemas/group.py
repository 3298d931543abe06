from scimkit.data.attrs import Complex, Reference, String
from scimkit.data.schemas import Schema, SchemaDefinition


class Group(Schema):
    """
    Group schema, identified by `urn:ietf:params:scim:schemas:core:2.0:Group` URI,
    as specified in [RFC-7643, section 4.2](https://www.rfc-editor.org/rfc/rfc7643#section-4.2).
    """

    definition = SchemaDefinition(
        "Group",
        "urn:ietf:params:scim:schemas:core:2.0:Group",
        "Group",
        [
            String(
                "displayName",
                required=True,
                description="A human-readable name for the Group. REQUIRED.",
            ),
            Complex(
                "members",
                multi_valued=True,
                uniqueness=False,
                description="A list of members of the Group.",
                sub_attributes=[
                    String(
                        "value",
                        mutable="immutable",
                        description="Identifier of the member of this Group.",
                    ),
                    Reference(
                        "$ref",
                        mutable="immutable",
                        reference_types=["User", "Group"],
                        description="The URI corresponding to a SCIM resource that is a member "
                        "of this Group.",
                    ),
                    String(
                        "type",
                        mutable="immutable",
                        canonical_values=["User", "Group"],
                        description="A label indicating the type of resource, e.g. 'User' "
                        "or 'Group'.",
                    ),
                ],
            ),
        ],
    )
