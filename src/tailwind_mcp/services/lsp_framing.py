"""Content-Length framing for JSON-RPC messages exchanged with a language server."""

import json
import re
from typing import Any, Dict, List

from ..utils.logging_config import get_logger

HEADER_TERMINATOR = b"\r\n\r\n"

_CONTENT_LENGTH_RE = re.compile(rb"content-length[ \t]*:[ \t]*(\d+)", re.IGNORECASE)

logger = get_logger("lsp_framing")


def encode_message(message: Dict[str, Any]) -> bytes:
    """Serialize one JSON-RPC message with its Content-Length header."""
    body = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


class FrameDecoder:
    """
    Incremental decoder for a Content-Length framed byte stream.

    Bytes may arrive split at any boundary; complete messages are returned
    as soon as their body is buffered. A header without a length or a body
    that is not a JSON object is discarded with a warning and decoding
    continues with the next frame.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Buffer ``chunk`` and return every message it completes."""
        self._buffer.extend(chunk)
        messages: List[Dict[str, Any]] = []

        while True:
            header_end = self._buffer.find(HEADER_TERMINATOR)
            if header_end == -1:
                break

            body_start = header_end + len(HEADER_TERMINATOR)
            match = _CONTENT_LENGTH_RE.search(bytes(self._buffer[:header_end]))
            if match is None:
                logger.warning("Discarding frame without Content-Length header")
                del self._buffer[:body_start]
                continue

            body_end = body_start + int(match.group(1))
            if len(self._buffer) < body_end:
                break

            body = bytes(self._buffer[body_start:body_end])
            del self._buffer[:body_end]

            try:
                message = json.loads(body.decode("utf-8"))
            except (UnicodeDecodeError, ValueError) as e:
                logger.warning(f"Discarding undecodable frame: {e}")
                continue

            if not isinstance(message, dict):
                logger.warning("Discarding frame that is not a JSON object")
                continue

            messages.append(message)

        return messages
