"""Response body decompression.

Bodies are buffered undecoded by the transport and decoded here, using
only the declared ``Content-Encoding``. Supported codings: identity,
gzip, deflate and brotli (``br``).
"""

import gzip
import zlib

import brotli

from lelang.core.exceptions import DecodeError
from lelang.core.logging import event, get_logger

logger = get_logger(__name__)

IDENTITY = {"", "identity", "none"}


def _gunzip(data: bytes) -> bytes:
    return gzip.decompress(data)


def _inflate(data: bytes) -> bytes:
    # Servers send both zlib-wrapped and raw deflate streams under "deflate"
    try:
        return zlib.decompress(data)
    except zlib.error:
        return zlib.decompress(data, -zlib.MAX_WBITS)


def _unbrotli(data: bytes) -> bytes:
    return brotli.decompress(data)


DECOMPRESSORS = {
    "gzip": _gunzip,
    "x-gzip": _gunzip,
    "deflate": _inflate,
    "br": _unbrotli,
}


class BodyDecoder:
    """Decode raw body bytes into text.

    Example:
        >>> decoder = BodyDecoder()
        >>> decoder.decode(gzip.compress(b"hello"), "gzip")
        'hello'
    """

    def __init__(self, charset: str = "utf-8") -> None:
        self.charset = charset

    def decompress(self, body: bytes, encoding: str | None) -> bytes:
        """Undo the declared content-encoding(s).

        Stacked codings (``"gzip, br"``) were applied left to right and
        are undone right to left.

        Raises:
            DecodeError: Unknown coding or structurally invalid data
        """
        codings = [c.strip().lower() for c in (encoding or "").split(",")]
        codings = [c for c in codings if c not in IDENTITY]

        for coding in reversed(codings):
            decompressor = DECOMPRESSORS.get(coding)
            if decompressor is None:
                raise DecodeError(f"Unsupported content-encoding: {coding}", encoding=coding)
            try:
                body = decompressor(body)
            except (OSError, EOFError, zlib.error, brotli.error) as e:
                raise DecodeError(
                    f"Failed to decompress {coding} body: {e}",
                    encoding=coding,
                ) from e

        return body

    def decode(self, body: bytes, encoding: str | None = "identity") -> str:
        """Decompress ``body`` and decode it to text.

        Args:
            body: Raw body bytes as received
            encoding: Declared Content-Encoding header value

        Returns:
            Decoded text (invalid byte sequences replaced)
        """
        raw = self.decompress(body, encoding)
        if len(raw) != len(body):
            logger.debug(
                "body.decompressed",
                extra=event(encoding=encoding, raw=len(body), decoded=len(raw)),
            )
        return raw.decode(self.charset, errors="replace")
