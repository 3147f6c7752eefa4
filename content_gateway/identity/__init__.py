from content_gateway.identity.domain import (
    BASE58_ALPHABET,
    DerivedIdentifier,
    HashScheme,
    IdentifierDeriver,
    IdentifierVersion,
    ValidationResult,
    encode_base58_fixed,
    validate_identifier,
)

__all__ = [
    "BASE58_ALPHABET",
    "DerivedIdentifier",
    "HashScheme",
    "IdentifierDeriver",
    "IdentifierVersion",
    "ValidationResult",
    "encode_base58_fixed",
    "validate_identifier",
]
