"""Record formatting: plain template lines or one JSON object per message."""

import json
import pprint
from datetime import datetime
from typing import Any

from .schemas import DEFAULT_TIME_FORMAT, JsonOptions, RecordSet, SinkConfig


def canonicalize(message: Any) -> str:
    """Text messages pass through; anything else gets a readable repr."""
    if isinstance(message, str):
        return message
    return pprint.pformat(message, sort_dicts=False)


def encode_json(value: Any, options: JsonOptions) -> str:
    text = json.dumps(value, ensure_ascii=not options.unescaped_unicode)
    if not options.unescaped_slashes:
        text = text.replace("/", "\\/")
    return text


def format_timestamp(now: datetime, time_format: str) -> str:
    # The default renders ISO-8601 with a colon in the offset (+00:00)
    if time_format == DEFAULT_TIME_FORMAT:
        return now.isoformat(timespec="seconds")
    return now.strftime(time_format)


def format_messages(
    category: str, messages: list[Any], timestamp: str, config: SinkConfig
) -> list[str]:
    """Render each message of a category, preserving input order."""
    lines = []
    for message in messages:
        text = canonicalize(message)
        if config.json_output:
            lines.append(
                encode_json(
                    {"time": timestamp, "type": category, "message": text},
                    config.json_options,
                )
            )
        else:
            lines.append(config.format % (timestamp, category, text))
    return lines


def serialize(record_set: RecordSet, config: SinkConfig) -> str:
    """Join a record set into the exact bytes appended to the file.

    Debug fields come first, then each category's lines in routing order.
    """
    blocks = []
    if record_set.metrics:
        blocks.append(encode_json(record_set.metrics, config.json_options))
    if record_set.header:
        blocks.append(record_set.header)
    for lines in record_set.entries.values():
        blocks.append("\n".join(lines))
    return "\n".join(blocks) + "\n"
