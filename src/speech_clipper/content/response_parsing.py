"""Recovering structured JSON from language-model responses.

Models do not always honour the requested format. Decoding tries an ordered
list of strategies (already-decoded object, JSON text, JSON inside a markdown
code fence) and the decoded value is then checked for the expected top-level
key. When the key is missing, any array found in the response is offered as
a fallback extraction.
"""

import json
import re
from collections.abc import Callable
from typing import Any

from ..logging_utils import get_logger
from .models import FallbackExtracted, Failed, ParseOutcome, Parsed

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _from_object(content: Any) -> Any | None:
    if isinstance(content, (dict, list)):
        return content
    return None


def _from_json_string(content: Any) -> Any | None:
    if not isinstance(content, str):
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None


def _from_markdown_fence(content: Any) -> Any | None:
    if not isinstance(content, str):
        return None
    for block in _FENCE_PATTERN.findall(content):
        try:
            return json.loads(block)
        except json.JSONDecodeError:
            continue
    return None


DECODE_STRATEGIES: tuple[tuple[str, Callable[[Any], Any | None]], ...] = (
    ("object", _from_object),
    ("json", _from_json_string),
    ("markdown", _from_markdown_fence),
)


def decode_content(content: Any) -> tuple[str, Any] | None:
    """
    Decode model content with the first strategy that succeeds.

    Args:
        content: Message content, usually a string

    Returns:
        Tuple of (strategy name, decoded value), or None if nothing decoded
    """
    for name, strategy in DECODE_STRATEGIES:
        decoded = strategy(content)
        if decoded is not None:
            return name, decoded
    return None


def missing_required_keys(data: Any, schema: dict[str, Any], path: str = "") -> list[str]:
    """
    List required object keys absent from ``data``.

    Nested object properties are checked too; array items are not.

    Args:
        data: Decoded JSON value
        schema: JSON schema of an object
        path: Key path prefix for reporting

    Returns:
        Dotted paths of missing keys, empty when the data is complete
    """
    if not isinstance(data, dict):
        return [path or "<root>"]

    missing = [f"{path}{key}" for key in schema.get("required", []) if key not in data]

    for key, subschema in schema.get("properties", {}).items():
        if subschema.get("type") == "object" and key in data:
            missing.extend(missing_required_keys(data[key], subschema, f"{path}{key}."))

    return missing


def parse_structured(
    content: Any, expected_key: str, schema: dict[str, Any] | None = None
) -> ParseOutcome:
    """
    Parse a model response expected to hold ``expected_key``.

    Args:
        content: Message content from the model
        expected_key: Top-level key the response should contain
        schema: Optional JSON schema whose required keys are checked

    Returns:
        Parsed when the key is present and the schema is satisfied,
        FallbackExtracted when the key is missing but an array was found,
        Failed otherwise
    """
    decoded_content = decode_content(content)
    if decoded_content is None:
        preview = str(content)[:100]
        logger.debug(f"Undecodable model response: {preview!r}")
        return Failed(reason=f"Response is not valid JSON: {preview!r}")

    strategy, decoded = decoded_content

    if isinstance(decoded, dict) and expected_key in decoded:
        if schema is not None:
            missing = missing_required_keys(decoded, schema)
            if missing:
                return Failed(
                    reason=f"Missing required fields: {', '.join(missing)}",
                    decoded=True,
                )
        return Parsed(value=decoded, strategy=strategy)

    logger.debug(f"'{expected_key}' not found in response, trying fallback extraction")

    if isinstance(decoded, list):
        return FallbackExtracted(value=decoded, strategy=strategy)

    if isinstance(decoded, dict):
        for key, value in decoded.items():
            if isinstance(value, list):
                logger.debug(f"Found array in property: {key}")
                return FallbackExtracted(value=value, strategy=strategy, source_key=key)

    return Failed(reason=f"Expected '{expected_key}' in response", decoded=True)
