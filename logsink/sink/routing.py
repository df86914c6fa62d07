"""Level routing: master file vs. per-category isolated files."""

from dataclasses import dataclass, field

from .formatter import format_messages
from .schemas import LogBatch, SinkConfig


@dataclass
class RoutedBatch:
    master: dict[str, list[str]] = field(default_factory=dict)
    isolated: dict[str, list[str]] = field(default_factory=dict)


def route(batch: LogBatch, config: SinkConfig, timestamp: str) -> RoutedBatch:
    """Format every category and split the batch by destination."""
    routed = RoutedBatch()
    for category, messages in batch.items():
        lines = format_messages(category, messages, timestamp, config)
        if config.isolates(category):
            routed.isolated[category] = lines
        else:
            routed.master[category] = lines
    return routed
