"""Custom database types for relational log stores."""

import json

from sqlalchemy import Text, TypeDecorator


class EncodedJSON(TypeDecorator):
    """JSON document stored as TEXT.

    Values that are already encoded strings are written unchanged, so callers
    may hand over either native structures or pre-encoded JSON.
    Reads always decode back into Python structures.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Encode structures to JSON text when saving to database."""
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value, dialect):
        """Decode JSON text when reading from database."""
        if value is None:
            return value
        try:
            return json.loads(value)
        except ValueError:
            return value
