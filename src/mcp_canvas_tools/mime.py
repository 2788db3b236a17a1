"""Magic-byte MIME detection for embedded canvas assets."""

import base64
from typing import Optional

# Four-byte signatures, upper-case hex
_SIGNATURES = {
    "89504E47": "image/png",
    "47494638": "image/gif",
    "52494646": "image/webp",
    "FFD8FFDB": "image/jpeg",
    "FFD8FFE0": "image/jpeg",
}

# Two-byte prefixes checked after the full signatures
_PREFIXES = {
    "424D": "image/bmp",
}

FALLBACK_DATA_URL_TYPE = "application/octet-stream"


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Classify binary content by its leading bytes.

    Returns None for unknown signatures and for payloads shorter than
    four bytes.
    """
    if len(data) < 4:
        return None

    signature = data[:4].hex().upper()
    if signature in _SIGNATURES:
        return _SIGNATURES[signature]

    for prefix, mime_type in _PREFIXES.items():
        if signature.startswith(prefix):
            return mime_type

    return None


def to_data_url(data: bytes, mime_type: Optional[str]) -> str:
    """Encode binary content as a base64 data URL."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or FALLBACK_DATA_URL_TYPE};base64,{payload}"
