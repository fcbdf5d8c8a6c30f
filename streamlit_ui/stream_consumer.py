"""Decode the chat endpoint's SSE body into callbacks."""
import json
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, Union

logger = logging.getLogger("chat.ui.stream")

STREAM_ERROR_MESSAGE = "Stream processing error"

_DATA_PREFIX = "data:"


def iter_frames(lines: Iterable[Union[str, bytes]]) -> Iterator[Dict[str, Any]]:
    """Yield the JSON payload of every well-formed ``data:`` line.

    Blank lines, other SSE fields and undecodable payloads are skipped.
    """
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.strip()
        if not line.startswith(_DATA_PREFIX):
            continue
        try:
            payload = json.loads(line[len(_DATA_PREFIX):].strip())
        except (json.JSONDecodeError, ValueError):
            logger.debug("Skipping malformed frame: %s", line[:80])
            continue
        if isinstance(payload, dict):
            yield payload


def process_stream(
    lines: Iterable[Union[str, bytes]],
    on_chunk: Callable[[str], None],
    on_done: Callable[[Dict[str, Any]], None],
    on_error: Callable[[str], None],
) -> None:
    """Dispatch frames by ``type``: chunk, done or error. Unknown types are ignored."""
    try:
        for frame in iter_frames(lines):
            frame_type = frame.get("type")
            if frame_type == "chunk":
                on_chunk(frame.get("content", ""))
            elif frame_type == "done":
                on_done(frame)
            elif frame_type == "error":
                on_error(frame.get("error") or STREAM_ERROR_MESSAGE)
    except Exception:
        logger.exception("Failed while reading the response stream")
        on_error(STREAM_ERROR_MESSAGE)
