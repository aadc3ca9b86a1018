"""Email address normalization."""

from email.utils import parseaddr

from key_resolver.exceptions import InvalidAddressError


def extract_address(value: str) -> str | None:
    """
    Extract the normalized addr-spec from a mailbox string.

    Accepts bare addresses as well as "Display Name <local@domain>".

    Returns:
        The lower-cased address, or None if no address could be extracted.
    """
    _, address = parseaddr(value)
    address = address.strip().lower()
    if not address or "@" not in address:
        return None
    local, _, domain = address.rpartition("@")
    if not local or not domain:
        return None
    return address


def normalize_address(value: str) -> str:
    """
    Normalize a mailbox string to its lower-cased addr-spec.

    Raises:
        InvalidAddressError: If no address can be extracted.
    """
    address = extract_address(value)
    if address is None:
        msg = "Could not extract mail address"
        raise InvalidAddressError(msg, address=value)
    return address
