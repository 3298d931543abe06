import re
import zoneinfo
from typing import Optional

import iso3166
import phonenumbers
import precis_i18n

from scimkit.data.attrs import (
    AttributeUniqueness,
    Binary,
    Boolean,
    Complex,
    Reference,
    String,
)
from scimkit.data.schemas import Schema, SchemaDefinition

_LANGUAGE_RANGE_REGEX = re.compile(
    r"\s*([a-z]{2}|\*)(?:-[a-z]{2})?(?:\s*;\s*q=[01](?:\.[0-9]{1,3})?)?\s*", flags=re.IGNORECASE
)

_LANGUAGE_TAG_REGEX = re.compile(
    "^(((en-GB-oed|i-ami|i-bnn|i-default|i-enochian|i-hak|i-klingon|i-lux|"
    "-mingo|i-navajo|i-pwn|i-tao|i-tay|i-tsu|sgn-BE-FR|sgn-BE-NL|sgn-CH-DE)|(art-lojban|"
    "el-gaulish|no-bok|no-nyn|zh-guoyu|zh-hakka|zh-min|zh-min-nan|zh-xiang))|(("
    "([A-Za-z]{2,3}(-([A-Za-z]{3}(-[A-Za-z]{3}){0,2}))?)|[A-Za-z]{4}|[A-Za-z]{5,8})"
    "(-([A-Za-z]{4}))?(-([A-Za-z]{2}|[0-9]{3}))?(-([A-Za-z0-9]{5,8}"
    "|[0-9][A-Za-z0-9]{3}))*(-([0-9A-WY-Za-wy-z](-[A-Za-z0-9]{2,8})+))*"
    "(-(x(-[A-Za-z0-9]{1,8})+))?)|(x(-[A-Za-z0-9]{1,8})+))$"
)

_EMAIL_REGEX = re.compile(
    r"(?:[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*|\""
    r"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21\x23-\x5b\x5d-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])*\""
    r")@(?:(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?|"
    r"\[(?:(2(5[0-5]|[0-4][0-9])|1[0-9][0-9]|[1-9]?[0-9])\.){3}(?:(2(5[0-5]|[0-4][0-9])"
    r"|1[0-9][0-9]|[1-9]?[0-9])|[a-z0-9-]*[a-z0-9]:"
    r"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21-\x5a\x53-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])+)])",
    flags=re.IGNORECASE,
)


def validate_preferred_language(value: str) -> Optional[str]:
    if not all(_LANGUAGE_RANGE_REGEX.fullmatch(item) for item in value.split(",")):
        return f"'{value}' is not a valid language range"
    return None


def validate_locale(value: str) -> Optional[str]:
    if _LANGUAGE_TAG_REGEX.fullmatch(value) is None:
        return f"'{value}' is not a valid language tag"
    return None


def validate_timezone(value: str) -> Optional[str]:
    try:
        zoneinfo.ZoneInfo(value)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        return f"'{value}' is not a known time zone"
    return None


def validate_email(value: str) -> Optional[str]:
    if _EMAIL_REGEX.fullmatch(value) is None:
        return f"'{value}' is not a valid email address"
    return None


def validate_phone_number(value: str) -> Optional[str]:
    try:
        phonenumbers.parse(value, _check_region=False)
    except phonenumbers.NumberParseException:
        return f"'{value}' is not a valid phone number"
    return None


def validate_country(value: str) -> Optional[str]:
    if iso3166.countries_by_alpha2.get(value.upper()) is None:
        return f"'{value}' is not an ISO 3166-1 alpha-2 country code"
    return None


_PRIMARY_DESCRIPTION = (
    "A Boolean value indicating the 'primary' or preferred attribute value for this attribute. "
    "The primary attribute value 'true' MUST appear no more than once."
)
_DISPLAY_DESCRIPTION = "A human-readable name, primarily used for display purposes. READ-ONLY."


def _plural(name, description, value, types=None, **kwargs) -> Complex:
    return Complex(
        name,
        multi_valued=True,
        description=description,
        **kwargs,
        sub_attributes=[
            value,
            String("display", description=_DISPLAY_DESCRIPTION),
            String(
                "type",
                canonical_values=types or False,
                description="A label indicating the attribute's function.",
            ),
            Boolean("primary", description=_PRIMARY_DESCRIPTION),
        ],
    )


class User(Schema):
    """
    User schema, identified by `urn:ietf:params:scim:schemas:core:2.0:User` URI,
    as specified in [RFC-7643, section 4.1](https://www.rfc-editor.org/rfc/rfc7643#section-4.1).

    `userName` is compared with `UsernameCaseMapped` PRECIS profile. Values of `emails`,
    `phoneNumbers`, `addresses.country`, `preferredLanguage`, `locale`, and `timezone` are
    checked by soft validators, which log warnings for unexpected contents.
    """

    definition = SchemaDefinition(
        "User",
        "urn:ietf:params:scim:schemas:core:2.0:User",
        "User Account",
        [
            String(
                "userName",
                required=True,
                uniqueness=AttributeUniqueness.SERVER,
                precis=precis_i18n.get_profile("UsernameCaseMapped"),
                description=(
                    "Unique identifier for the User, typically used by the user to directly "
                    "authenticate to the service provider. Each User MUST include a non-empty "
                    "userName value."
                ),
            ),
            Complex(
                "name",
                description="The components of the user's real name.",
                sub_attributes=[
                    String("formatted", description="The full name, formatted for display."),
                    String("familyName", description="The family name of the User."),
                    String("givenName", description="The given name of the User."),
                    String("middleName", description="The middle name(s) of the User."),
                    String("honorificPrefix", description="The honorific prefix(es) of the User."),
                    String("honorificSuffix", description="The honorific suffix(es) of the User."),
                ],
            ),
            String(
                "displayName",
                description="The name of the User, suitable for display to end-users.",
            ),
            String("nickName", description="The casual way to address the user in real life."),
            Reference(
                "profileUrl",
                reference_types=["external"],
                description="A fully qualified URL pointing to a page representing the User's "
                "online profile.",
            ),
            String("title", description="The user's title, such as 'Vice President'."),
            String(
                "userType",
                description="Used to identify the relationship between the organization "
                "and the user.",
            ),
            String(
                "preferredLanguage",
                validators=[validate_preferred_language],
                description="Indicates the User's preferred written or spoken language.",
            ),
            String(
                "locale",
                validators=[validate_locale],
                description="Used to indicate the User's default location for purposes of "
                "localizing items such as currency, date time format, or numerical "
                "representations.",
            ),
            String(
                "timezone",
                validators=[validate_timezone],
                description="The User's time zone in the 'Olson' time zone database format, "
                "e.g. 'America/Los_Angeles'.",
            ),
            Boolean(
                "active",
                description="A Boolean value indicating the User's administrative status.",
            ),
            String(
                "password",
                direction="in",
                returned=False,
                description="The User's cleartext password.",
            ),
            _plural(
                "emails",
                "Email addresses for the user.",
                String(
                    "value",
                    validators=[validate_email],
                    description="Email address for the user.",
                ),
                ["work", "home", "other"],
            ),
            _plural(
                "phoneNumbers",
                "Phone numbers for the User.",
                String(
                    "value",
                    validators=[validate_phone_number],
                    description="Phone number of the User.",
                ),
                ["work", "home", "mobile", "fax", "pager", "other"],
                uniqueness=False,
            ),
            _plural(
                "ims",
                "Instant messaging addresses for the User.",
                String("value", description="Instant messaging address for the User."),
                ["aim", "gtalk", "icq", "xmpp", "msn", "skype", "qq", "yahoo"],
                uniqueness=False,
            ),
            _plural(
                "photos",
                "URLs of photos of the User.",
                Reference(
                    "value",
                    reference_types=["external"],
                    description="URL of a photo of the User.",
                ),
                ["photo", "thumbnail"],
                uniqueness=False,
            ),
            Complex(
                "addresses",
                multi_valued=True,
                description="A physical mailing address for this User.",
                sub_attributes=[
                    String(
                        "formatted",
                        description="The full mailing address, formatted for display.",
                    ),
                    String("streetAddress", description="The full street address component."),
                    String("locality", description="The city or locality component."),
                    String("region", description="The state or region component."),
                    String("postalCode", description="The zip code or postal code component."),
                    String(
                        "country",
                        validators=[validate_country],
                        description="The country name component.",
                    ),
                    String(
                        "type",
                        canonical_values=["work", "home", "other"],
                        description="A label indicating the attribute's function.",
                    ),
                    Boolean("primary", description=_PRIMARY_DESCRIPTION),
                ],
            ),
            Complex(
                "groups",
                direction="out",
                mutable=False,
                multi_valued=True,
                uniqueness=False,
                description="A list of groups to which the user belongs.",
                sub_attributes=[
                    String(
                        "value",
                        direction="out",
                        mutable=False,
                        description="The identifier of the User's group.",
                    ),
                    Reference(
                        "$ref",
                        direction="out",
                        mutable=False,
                        reference_types=["User", "Group"],
                        description="The URI of the corresponding 'Group' resource.",
                    ),
                    String(
                        "display",
                        direction="out",
                        mutable=False,
                        description=_DISPLAY_DESCRIPTION,
                    ),
                    String(
                        "type",
                        direction="out",
                        mutable=False,
                        canonical_values=["direct", "indirect"],
                        description="A label indicating the attribute's function.",
                    ),
                ],
            ),
            _plural(
                "entitlements",
                "A list of entitlements for the User that represent a thing the User has.",
                String("value", description="The value of an entitlement."),
                uniqueness=False,
            ),
            _plural(
                "roles",
                "A list of roles for the User that collectively represent who the User is.",
                String("value", description="The value of a role."),
                uniqueness=False,
            ),
            _plural(
                "x509Certificates",
                "A list of certificates issued to the User.",
                Binary("value", description="The value of an X.509 certificate."),
                uniqueness=False,
            ),
        ],
    )


class EnterpriseUser(Schema):
    """
    Enterprise User schema extension, identified by
    `urn:ietf:params:scim:schemas:extension:enterprise:2.0:User` URI, as specified in
    [RFC-7643, section 4.3](https://www.rfc-editor.org/rfc/rfc7643#section-4.3).
    """

    definition = SchemaDefinition(
        "EnterpriseUser",
        "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User",
        "Enterprise User",
        [
            String(
                "employeeNumber",
                description="Numeric or alphanumeric identifier assigned to a person.",
            ),
            String("costCenter", description="Identifies the name of a cost center."),
            String("organization", description="Identifies the name of an organization."),
            String("division", description="Identifies the name of a division."),
            String("department", description="Identifies the name of a department."),
            Complex(
                "manager",
                uniqueness=False,
                description="The User's manager.",
                sub_attributes=[
                    String(
                        "value",
                        required=True,
                        description="The id of the SCIM resource representing the User's manager.",
                    ),
                    Reference(
                        "$ref",
                        reference_types=["User"],
                        description="The URI of the SCIM resource representing the User's manager.",
                    ),
                    String(
                        "displayName",
                        mutable=False,
                        description="The displayName of the User's manager.",
                    ),
                ],
            ),
        ],
    )
