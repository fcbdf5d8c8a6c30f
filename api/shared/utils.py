"""Common utility functions."""
import base64
import re
from typing import Any, Dict, Optional

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]+)*)(?P<b64>;base64)?,(?P<payload>.*)$",
    re.DOTALL,
)


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Keep the first ``max_length`` characters, appending ``suffix`` if anything was cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def describe_data_url(data: str, file_name: Optional[str] = None) -> Dict[str, Any]:
    """File attributes for an embedded payload: mime type, decoded size, name.

    Anything that is not a well-formed ``data:`` URL yields only what is known.
    """
    attributes: Dict[str, Any] = {}
    if file_name:
        attributes["fileName"] = file_name

    match = _DATA_URL_RE.match(data)
    if not match:
        return attributes

    if match.group("mime"):
        attributes["mimeType"] = match.group("mime")
    if match.group("b64"):
        try:
            attributes["fileSize"] = len(base64.b64decode(match.group("payload"), validate=True))
        except ValueError:
            # Undecodable payload: size stays unknown
            pass
    return attributes
