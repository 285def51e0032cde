"""One-way hashing of personal data for conversions events."""

from hashlib import sha256

from src.models.order import ContactInfo


def hash_user_value(value: str) -> str:
    """Normalize (trim, lower-case) and SHA-256 hash a single value.

    Args:
        value: Raw personal data value.

    Returns:
        str: Hex digest, or an empty string for empty input.
    """
    if not value:
        return ""
    return sha256(value.strip().lower().encode("utf-8")).hexdigest()


def build_hashed_user_data(contact: ContactInfo | None) -> dict[str, str]:
    """Build the hashed user-matching parameters for a contact.

    Fields missing from the contact are omitted, never sent hashed-empty.

    Args:
        contact: Buyer contact details, if any.

    Returns:
        dict: Mapping of ``em``/``ph``/``fn``/``ln`` to hex digests.
    """
    if contact is None:
        return {}

    candidates = {
        "em": contact.email,
        "ph": contact.phone_digits_only,
        "fn": contact.first_name,
        "ln": contact.last_name,
    }
    return {
        key: hash_user_value(value)
        for key, value in candidates.items()
        if value and value.strip()
    }
