"""Field element helpers."""

PRIME = 2**251 + 17 * 2**192 + 1

SHORT_STRING_MAX_LENGTH = 31

_ASCII_WHITESPACE = b"\t\n\x0b\x0c\r"


def to_felt(value: int) -> int:
    """Reduce an integer into the field, mapping negatives to their residue."""
    return value % PRIME


def short_string_to_felt(text: str) -> int:
    """Encode a short string literal (e.g. 'ERC20') as a field element.

    Raises:
        ValueError: If the text is not ASCII or longer than 31 characters

    """
    if len(text) > SHORT_STRING_MAX_LENGTH:
        raise ValueError(
            f"Short string '{text}' exceeds {SHORT_STRING_MAX_LENGTH} characters"
        )
    try:
        encoded = text.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError(f"Short string '{text}' is not ASCII") from exc
    return int.from_bytes(encoded, "big")


def felt_to_short_string(value: int) -> str | None:
    """Decode a field element as a short string, if it looks like one.

    Returns None when the value contains non-printable bytes or zero bytes
    in the middle of the text.
    """
    raw = to_felt(value).to_bytes(32, "big").lstrip(b"\x00")
    if not raw:
        return None
    if b"\x00" in raw:
        return None
    if not all(0x20 <= byte < 0x7F or byte in _ASCII_WHITESPACE for byte in raw):
        return None
    return raw.decode("ascii")


def format_felt(value: int) -> str:
    """Render a felt the way failure reports show panic payloads."""
    if (as_string := felt_to_short_string(value)) is not None:
        return f"{value} ('{as_string}')"
    return str(value)
