"""A small pool of threads that fetch images in the background."""
import collections
import concurrent.futures
import logging
import os
import threading
import time
import typing as t
from pathlib import Path

import attr

from html2tex import images
from html2tex.errors import ErrorCode
from html2tex.errors import raise_error

log = logging.getLogger(__name__)

QUEUE_SLOTS_PER_WORKER = 4


@attr.s(slots=True, frozen=True)
class DownloadRequest:
    """Where to get an image, and where to put it."""

    url: str = attr.ib()
    output_dir: Path = attr.ib(converter=Path)
    sequence_number: int = attr.ib(default=0)
    filename: str | None = attr.ib(default=None)


@attr.s(slots=True)
class DownloadResult:
    """How one download went."""

    url: str = attr.ib()
    local_path: Path | None = attr.ib(default=None)
    success: bool = attr.ib(default=False)
    error: str | None = attr.ib(default=None)
    sequence_number: int = attr.ib(default=0)


ResultCallback = t.Callable[[DownloadResult], None]
BatchCallback = t.Callable[[int, int], None]
QueuedDownload = tuple[DownloadRequest, concurrent.futures.Future]


class ImageDownloader:
    """Fixed-size worker pool over a bounded FIFO of download requests.

    Results come back in completion order; match them up by `sequence_number`.
    """

    def __init__(
        self,
        max_workers: int = 0,
        *,
        on_result: ResultCallback | None = None,
        on_complete: BatchCallback | None = None,
        timeout: float = images.DEFAULT_TIMEOUT,
        user_agent: str = images.DEFAULT_USER_AGENT,
        convert_svg: bool = False,
    ) -> None:
        self.max_workers = max(1, max_workers or os.cpu_count() or 1)
        self.capacity = self.max_workers * QUEUE_SLOTS_PER_WORKER
        self.on_result = on_result
        self.on_complete = on_complete
        self.timeout = timeout
        self.user_agent = user_agent
        self.convert_svg = convert_svg

        self._queue: collections.deque[QueuedDownload] = collections.deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._all_complete = threading.Condition(self._lock)
        self._results_lock = threading.Lock()
        self._results: list[DownloadResult] = []

        self.total_enqueued = 0
        self.completed = 0
        self.successful = 0
        self.active_workers = 0
        self._stopped = False
        self._closed = False

        self._threads = [
            threading.Thread(target=self._work, name=f"html2tex-download-{n}", daemon=True)
            for n in range(self.max_workers)
        ]
        for thread in self._threads:
            thread.start()
        log.debug("Started %d download workers", self.max_workers)

    def __enter__(self) -> "ImageDownloader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def enqueue(self, request: DownloadRequest) -> concurrent.futures.Future:
        """Queue a download, waiting for room if the queue is full."""
        future: concurrent.futures.Future = concurrent.futures.Future()
        with self._lock:
            while len(self._queue) >= self.capacity and not self._stopped:
                self._not_full.wait()
            if self._stopped:
                raise_error(ErrorCode.INVAL, "Downloader was cancelled")
            self._queue.append((request, future))
            self.total_enqueued += 1
            self._not_empty.notify()
        return future

    def _work(self) -> None:
        while True:
            with self._lock:
                while not self._queue and not self._stopped:
                    self._not_empty.wait()
                if self._stopped:
                    return
                request, future = self._queue.popleft()
                self.active_workers += 1
                self._not_full.notify()

            result = self._download(request)
            with self._results_lock:
                self._results.append(result)
            if self.on_result is not None:
                self._call_back(self.on_result, result)
            future.set_result(result)

            with self._lock:
                self.active_workers -= 1
                self.completed += 1
                if result.success:
                    self.successful += 1
                finished = self.completed == self.total_enqueued
                if self._finished():
                    self._all_complete.notify_all()
                completed, successful = self.completed, self.successful
            if finished and self.on_complete is not None:
                self._call_back(self.on_complete, completed, successful)

    def _download(self, request: DownloadRequest) -> DownloadResult:
        try:
            path = images.download_image_src(
                request.url,
                request.output_dir,
                request.sequence_number,
                timeout=self.timeout,
                user_agent=self.user_agent,
                convert_svg=self.convert_svg,
                filename=request.filename,
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.warning("Download #%d failed: %s", request.sequence_number, exc)
            return DownloadResult(
                request.url, error=str(exc), sequence_number=request.sequence_number
            )
        return DownloadResult(request.url, path, True, None, request.sequence_number)

    @staticmethod
    def _call_back(callback: t.Callable, *args) -> None:
        try:
            callback(*args)
        except Exception:  # pylint: disable=broad-except
            log.exception("Download callback failed")

    def _finished(self) -> bool:
        if self.completed == self.total_enqueued:
            return True
        return self.active_workers == 0 and not self._queue and self._stopped

    def wait(self, timeout_ms: int = 0) -> bool:
        """Block until everything queued is done; 0 means no time limit."""
        deadline = None if timeout_ms <= 0 else time.monotonic() + timeout_ms / 1000.0
        with self._lock:
            while not self._finished():
                if deadline is None:
                    self._all_complete.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._all_complete.wait(remaining)
            return True

    def cancel(self) -> int:
        """Stop the workers and drop whatever is still queued; returns how many."""
        with self._lock:
            self._stopped = True
            drained = list(self._queue)
            self._queue.clear()
            self._not_empty.notify_all()
            self._not_full.notify_all()
            self._all_complete.notify_all()
        for request, future in drained:
            future.set_result(
                DownloadResult(
                    request.url,
                    error="Cancelled before download",
                    sequence_number=request.sequence_number,
                )
            )
        if drained:
            log.info("Cancelled %d pending downloads", len(drained))
        return len(drained)

    def get_results(self) -> list[DownloadResult]:
        """Hand over the results gathered so far."""
        with self._results_lock:
            results, self._results = self._results, []
        return results

    def close(self) -> None:
        """Cancel and join; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.cancel()
        for thread in self._threads:
            thread.join()
