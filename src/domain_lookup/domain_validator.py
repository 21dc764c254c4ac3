"""
Identifier validation and normalization module.

Normalizes user input (trim, lowercase, IDNA for international names) and
checks it against the syntax required by its RDAP object type.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional

import idna

from .enums import ObjectType
from .exceptions import ValidationError


# One DNS label: 1-63 alphanumerics or hyphens, no leading/trailing hyphen
LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

# Characters never allowed in an autnum or entity handle
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&*()+=\[\]{}|\\;"\'<>,?/`~]'
)


@dataclass
class IdentifierValidationResult:
    """Result of identifier validation."""

    valid: bool
    canonical: Optional[str]
    error: Optional[ValidationError]


def is_valid_hostname(value: str) -> bool:
    """Check dot-separated DNS-label syntax (case-insensitive)."""
    if not value or len(value) > 253:
        return False
    return all(LABEL_PATTERN.match(label) for label in value.lower().split("."))


class IdentifierValidator:
    """
    Validates and normalizes lookup identifiers.

    Domains must be DNS-label syntax after IDNA encoding. IP queries accept a
    literal address or network as well as label syntax. Autnum and entity
    handles only need to be non-empty and free of forbidden characters.
    """

    def validate(
        self, raw: Optional[str], object_type: ObjectType = ObjectType.DOMAIN
    ) -> IdentifierValidationResult:
        try:
            canonical = self.normalize(raw, object_type)
        except ValidationError as e:
            return IdentifierValidationResult(valid=False, canonical=None, error=e)
        return IdentifierValidationResult(valid=True, canonical=canonical, error=None)

    def normalize(self, raw: Optional[str], object_type: ObjectType = ObjectType.DOMAIN) -> str:
        """
        Convert an identifier to canonical form.

        Raises:
            ValidationError: If the identifier is empty, not a string or malformed
        """
        if raw is not None and not isinstance(raw, str):
            raise ValidationError(
                code="invalid_type",
                message=f"Identifier must be a string, got {type(raw).__name__}",
                details={"raw_input": repr(raw)},
            )
        if raw is None or not raw.strip():
            raise ValidationError(
                code="empty_input",
                message="Identifier is empty",
                details={"raw_input": raw},
            )

        value = raw.strip().lower()

        if object_type is ObjectType.IP:
            if self._is_ip_literal(value) or is_valid_hostname(value):
                return value
            raise ValidationError(
                code="invalid_ip",
                message=f"Invalid IP address or network: {raw.strip()}",
                details={"raw_input": raw},
            )

        if object_type in (ObjectType.AUTNUM, ObjectType.ENTITY):
            forbidden = FORBIDDEN_CHARS_PATTERN.findall(value)
            if forbidden:
                raise ValidationError(
                    code="forbidden_chars",
                    message="Identifier contains forbidden characters",
                    details={"raw_input": raw, "forbidden_chars": forbidden},
                )
            return value

        canonical = self.to_ascii(value)
        if not is_valid_hostname(canonical):
            raise ValidationError(
                code="invalid_domain",
                message=f"Invalid domain format: {raw.strip()}",
                details={"raw_input": raw, "canonical": canonical},
            )
        return canonical

    def to_ascii(self, domain: str) -> str:
        """IDNA-encode a domain containing non-ASCII characters."""
        if all(ord(c) < 128 for c in domain):
            return domain
        try:
            return idna.encode(domain, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                code="idna_error",
                message=f"IDNA encoding failed: {e}",
                details={"domain": domain, "idna_error": str(e)},
            )

    @staticmethod
    def _is_ip_literal(value: str) -> bool:
        try:
            if "/" in value:
                ipaddress.ip_network(value, strict=False)
            else:
                ipaddress.ip_address(value)
        except ValueError:
            return False
        return True
