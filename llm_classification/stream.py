"""Incremental decoder for newline-delimited JSON completion streams.

Transport chunks do not line up with JSON fragments: one chunk may carry
several fragments, and one fragment may be split across chunks (even in
the middle of a multi-byte character). The accumulator buffers raw bytes
and only decodes complete lines.
"""

import json
from typing import List, Union

from pydantic import ValidationError

from llm_classification.errors import CompletionError
from llm_classification.schema import CompletionChunk


class StreamAccumulator:
    """Concatenates streamed ``response`` fragments in arrival order.

    Attributes:
        more_expected: False once a fragment with ``done=true`` was seen.
        fragments: Every decoded ``response`` value, in arrival order.
    """

    def __init__(self) -> None:
        self._buffer = b""
        self.more_expected = True
        self.fragments: List[str] = []

    def feed(self, data: Union[bytes, str]) -> None:
        """Add one transport chunk and decode every complete line in it.

        Args:
            data: Raw bytes (or text) as received from the transport.

        Raises:
            CompletionError: If a complete line is not a valid fragment or
                the service reported an error inside the stream.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buffer += data
        *lines, self._buffer = self._buffer.split(b"\n")
        for line in lines:
            self._decode_line(line)

    def finish(self) -> str:
        """Flush any trailing unterminated line and return the full text.

        Returns:
            All fragments joined in the order they arrived.
        """
        if self._buffer.strip():
            line, self._buffer = self._buffer, b""
            self._decode_line(line)
        self._buffer = b""
        return self.text

    @property
    def text(self) -> str:
        return "".join(self.fragments)

    def _decode_line(self, line: bytes) -> None:
        stripped = line.strip()
        if not stripped:
            return
        raw = stripped.decode("utf-8", errors="replace")
        try:
            payload = json.loads(raw)
            chunk = CompletionChunk.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise CompletionError(stage="decode", detail=str(exc), raw_line=raw) from exc

        if chunk.error:
            raise CompletionError(stage="service", detail=chunk.error, raw_line=raw)
        self.fragments.append(chunk.response)
        if chunk.done:
            self.more_expected = False
