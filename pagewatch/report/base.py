"""Reporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from ..engine.record import Record


class BaseReporter(ABC):
    """Sink receiving each batch of newly seen records."""

    @abstractmethod
    def report(self, records: Sequence[Record], timestamp: datetime) -> None:
        """Announce a non-empty batch discovered at ``timestamp``."""

    def close(self) -> None:
        """Release underlying resources."""


class CompositeReporter(BaseReporter):
    """Fan a batch out to several reporters in order."""

    def __init__(self, reporters: Sequence[BaseReporter]) -> None:
        self.reporters = list(reporters)

    def report(self, records: Sequence[Record], timestamp: datetime) -> None:
        for reporter in self.reporters:
            reporter.report(records, timestamp)

    def close(self) -> None:
        for reporter in self.reporters:
            reporter.close()


__all__ = ["BaseReporter", "CompositeReporter"]
