"""Base64 payload helpers shared by the personality and frame decoders."""

import base64
import binascii
import logging

logger = logging.getLogger(__name__)

HEX_DUMP_WIDTH = 16


class DecodeFailure(ValueError):
    """Raised when an embedded payload is not valid base64."""


def decode_base64(text: str) -> bytes:
    """Decode base64 text from a backup attribute or text node.

    Whitespace is ignored and missing ``=`` padding is accepted, matching how
    the console's own web viewer reads these payloads. An empty string
    decodes to ``b""``.
    """

    data = "".join(text.split())
    if len(data) % 4 == 0:
        if data.endswith("=="):
            data = data[:-2]
        elif data.endswith("="):
            data = data[:-1]
    elif "=" in data:
        raise DecodeFailure(f"Padding in a {len(data)}-character base64 payload")
    if len(data) % 4 == 1:
        raise DecodeFailure(f"Truncated base64 payload ({len(data)} characters)")

    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailure(f"Malformed base64 payload: {exc}") from exc


def bytes_to_hex(data: bytes) -> str:
    """Return ``data`` as space separated lowercase hex pairs."""

    return " ".join(f"{b:02x}" for b in data)


def hex_dump(data: bytes) -> str:
    """Render ``data`` as offset, hex and ASCII columns, 16 bytes per line."""

    lines: list[str] = []
    for offset in range(0, len(data), HEX_DUMP_WIDTH):
        chunk = data[offset : offset + HEX_DUMP_WIDTH]
        ascii_repr = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"{offset:04x}: {bytes_to_hex(chunk):<48} {ascii_repr}")
    return "\n".join(lines)


def payload_hex_dump(text: str) -> str:
    """Decode a base64 payload and hex-dump it, or report the failure."""

    try:
        data = decode_base64(text)
    except DecodeFailure as exc:
        logger.debug("Hex dump skipped: %s", exc)
        return "Failed to decode"
    return hex_dump(data)
