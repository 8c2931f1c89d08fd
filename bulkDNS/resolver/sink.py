"""Result writer."""
from __future__ import annotations

import sys
from typing import Optional, TextIO

from bulkDNS.resolver.models import ItemResult


class LineSink:
    """Write one line per result, flushed immediately."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, result: ItemResult) -> None:
        self.stream.write(result.line + "\n")
        self.stream.flush()
