"""Polling daemon wiring extraction, dedup, persistence and reporting."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime
from threading import Barrier, BrokenBarrierError, Event
from typing import Callable, Iterator

import structlog

from .config import SourceConfig, WatchConfig
from .engine import Extractor, Record, SeenStore
from .logging_conf import source_logger
from .report import BaseReporter
from .scheduler import APSchedulerAdapter

WORKER_RELEASE_TIMEOUT = 10.0


def _local_now() -> datetime:
    return datetime.now().astimezone()


class Poller:
    """Run poll cycles over the configured sources.

    A cycle extracts every active source in configuration order, keeps the
    records the store has not seen, persists the store and hands the batch to
    the reporter. Failures of one source never abort the cycle.

    Extraction runs on a worker pool owned by the poller for its whole life,
    so thread-bound extractor state (browser sessions) survives between
    cycles. Call ``close`` when done.
    """

    def __init__(
        self,
        config: WatchConfig,
        extractor: Extractor,
        store: SeenStore,
        reporter: BaseReporter,
        *,
        stop_event: Event | None = None,
        scheduler: APSchedulerAdapter | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.sources = list(config.sources)
        self.interval_minutes = config.check_interval
        self.max_workers = config.max_workers
        self.extractor = extractor
        self.store = store
        self.reporter = reporter
        self.stop_event = stop_event or Event()
        self.scheduler = scheduler
        self.clock = clock
        self.logger = structlog.get_logger("pagewatch").bind(component="poller")
        self._executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    def run_cycle(self) -> list[Record]:
        """Poll every active source once and return the newly seen records."""

        self.logger.info("cycle_started", sources=len(self.sources))
        batch: list[Record] = []
        for source, records in self._extracted():
            batch.extend(self._absorb(source, records))
        if self.stop_event.is_set():
            self.logger.info("cycle_interrupted", new_records=len(batch))
        if batch:
            self._persist()
            self.reporter.report(batch, self.clock())
        self.logger.info("cycle_finished", new_records=len(batch))
        return batch

    def run_once(self) -> list[Record]:
        return self.run_cycle()

    def run_forever(self) -> None:
        """Schedule cycles every ``interval_minutes`` until ``stop`` is called."""

        scheduler = self.scheduler or APSchedulerAdapter()
        self.scheduler = scheduler
        scheduler.schedule_poll(self._scheduled_cycle, self.interval_minutes)
        scheduler.start()
        try:
            self.stop_event.wait()
        finally:
            # A cycle in flight stops at the next source boundary; wait for it
            self.stop_event.set()
            scheduler.shutdown(wait=True)

    def stop(self) -> None:
        self.stop_event.set()

    def close(self) -> None:
        """Release per-worker extractor resources and stop the worker pool."""

        executor, self._executor = self._executor, None
        if executor is None:
            return
        release = getattr(self.extractor, "release_worker", None)
        if callable(release):
            # Every task blocks until all workers hold one, so each thread releases exactly once
            barrier = Barrier(self.max_workers)
            wait(
                [
                    executor.submit(self._release_worker, barrier, release)
                    for _ in range(self.max_workers)
                ]
            )
        executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    def _scheduled_cycle(self) -> None:
        if self.stop_event.is_set():
            return
        try:
            self.run_cycle()
        except Exception:  # noqa: BLE001
            self.logger.exception("cycle_failed")

    def _workers(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="pagewatch-extract"
            )
        return self._executor

    def _release_worker(self, barrier: Barrier, release: Callable[[], None]) -> None:
        try:
            barrier.wait(timeout=WORKER_RELEASE_TIMEOUT)
        except BrokenBarrierError:
            self.logger.warning("worker_release_unsynchronised")
        try:
            release()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("worker_release_failed", error=str(exc))

    def _extracted(self) -> Iterator[tuple[SourceConfig, list[Record]]]:
        active = [source for source in self.sources if source.active]
        if not active:
            return
        workers = self._workers()
        if self.max_workers == 1:
            for source in active:
                if self.stop_event.is_set():
                    return
                yield source, workers.submit(self._extract, source).result()
            return
        futures: list[tuple[SourceConfig, Future[list[Record]]]] = [
            (source, workers.submit(self._extract, source)) for source in active
        ]
        # Results are consumed in configuration order to keep reporting deterministic
        for source, future in futures:
            if self.stop_event.is_set():
                for _, pending in futures:
                    pending.cancel()
                return
            yield source, future.result()

    def _extract(self, source: SourceConfig) -> list[Record]:
        log = source_logger(source.name)
        try:
            records = self.extractor.extract(source)
        except Exception as exc:  # noqa: BLE001
            log.warning("extraction_failed", url=source.url, error=str(exc))
            return []
        log.debug("extraction_finished", records=len(records))
        return records

    def _absorb(self, source: SourceConfig, records: list[Record]) -> list[Record]:
        fresh: list[Record] = []
        for record in records:
            if not record.title:
                continue
            if self.store.contains(source.name, record):
                continue
            self.store.append(source.name, record)
            fresh.append(record)
        if fresh:
            source_logger(source.name).info("records_new", count=len(fresh))
        return fresh

    def _persist(self) -> None:
        try:
            self.store.persist()
        except Exception as exc:  # noqa: BLE001
            self.logger.error("persist_failed", error=str(exc))


__all__ = ["Poller"]
