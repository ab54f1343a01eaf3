"""Background availability checks against the package service.

Work runs on a thread pool; callbacks are queued and only run when the
owning thread calls drain(). Only one batch check may run per process.
"""

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, TypeVar

from patch_hub.models import AvailabilityRecord, InstallResult, PackageStatus
from patch_hub.packages.client import PackageServiceClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROBE_TIMEOUT = 1.5
DEFAULT_ITEM_TIMEOUT = 2.0
DEFAULT_INSTALL_TIMEOUT = 10.0

ProgressCallback = Callable[[int, int, str, bool], None]
CompleteCallback = Callable[[dict[str, bool]], None]
InstallCallback = Callable[[str, InstallResult], None]


class AvailabilityPoller:
    """Checks package availability off the primary thread.

    The status cache is only written by callbacks executed in drain(), so it
    is safe to read from the thread that drains.
    """

    _batch_lock = threading.Lock()
    _batch_running = False

    def __init__(
        self,
        client: PackageServiceClient,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        item_timeout: float = DEFAULT_ITEM_TIMEOUT,
        install_timeout: float = DEFAULT_INSTALL_TIMEOUT,
        max_workers: int = 2,
    ) -> None:
        self.client = client
        self.probe_timeout = probe_timeout
        self.item_timeout = item_timeout
        self.install_timeout = install_timeout
        self.status_cache: dict[str, AvailabilityRecord] = {}

        self._callbacks: queue.Queue = queue.Queue()
        self._closed = False
        self._workers = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="patch-hub-poller"
        )
        # Bounded calls get their own pool so a batch worker never waits on itself
        self._calls = ThreadPoolExecutor(
            max_workers=max_workers * 2, thread_name_prefix="patch-hub-call"
        )

    # ------------------------------------------------------------------
    # Single-flight flag
    # ------------------------------------------------------------------

    @classmethod
    def _try_acquire_batch(cls) -> bool:
        with cls._batch_lock:
            if cls._batch_running:
                return False
            cls._batch_running = True
            return True

    @classmethod
    def _release_batch(cls) -> None:
        with cls._batch_lock:
            cls._batch_running = False

    @classmethod
    def is_batch_running(cls) -> bool:
        with cls._batch_lock:
            return cls._batch_running

    @classmethod
    def reset_batch_flag(cls) -> None:
        """Clear the single-flight flag (teardown helper)."""
        cls._release_batch()

    # ------------------------------------------------------------------
    # Callback queue
    # ------------------------------------------------------------------

    def _post(self, callback: Callable[..., Any], *args: Any) -> None:
        if not self._closed:
            self._callbacks.put((callback, args))

    def drain(self) -> int:
        """Run every queued callback on the calling thread. Returns how many ran."""
        ran = 0
        while True:
            try:
                callback, args = self._callbacks.get_nowait()
            except queue.Empty:
                return ran
            callback(*args)
            ran += 1

    # ------------------------------------------------------------------
    # Bounded synchronous checks
    # ------------------------------------------------------------------

    def _bounded(self, fn: Callable[[], T], timeout: float, default: T) -> T:
        """Run fn with an upper bound on the wait; timeouts and errors yield default."""
        try:
            future = self._calls.submit(fn)
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.debug("Package service call timed out after %ss", timeout)
            return default
        except Exception as exc:
            logger.debug("Package service call failed: %s", exc)
            return default

    def is_service_available(self) -> bool:
        return self._bounded(self.client.is_available, self.probe_timeout, False)

    def check_package(self, package_id: str) -> bool:
        return self._bounded(
            lambda: self.client.check_package_available(package_id),
            self.item_timeout,
            False,
        )

    def is_package_installed(self, package_id: str) -> bool:
        return self._bounded(
            lambda: self.client.is_package_installed(package_id),
            self.item_timeout,
            False,
        )

    # ------------------------------------------------------------------
    # Batch availability
    # ------------------------------------------------------------------

    def check_batch(
        self,
        package_ids: list[str],
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> Future | None:
        """Start a background availability check for several packages.

        Progress is reported once per package and completion exactly once,
        both through the callback queue. If another batch is already running
        the completion callback receives an empty dict.

        Returns:
            The worker future, or None if no batch was started.
        """
        if not self._try_acquire_batch():
            logger.debug("Availability batch already running; ignoring request")
            if on_complete is not None:
                self._post(on_complete, {})
            return None

        unique = list(dict.fromkeys(package_ids))
        if not unique:
            self._release_batch()
            self._post(self._finish_batch, {}, on_complete)
            return None

        for package_id in unique:
            record = self.status_cache.setdefault(package_id, AvailabilityRecord())
            record.loading = True

        try:
            return self._workers.submit(self._run_batch, unique, on_progress, on_complete)
        except RuntimeError:
            self._release_batch()
            raise

    def _item_status(self, package_id: str, installed: dict[str, str | None]) -> PackageStatus:
        if package_id in installed:
            return PackageStatus.INSTALLED
        if self.check_package(package_id):
            return PackageStatus.AVAILABLE
        return PackageStatus.NOT_IN_REPOSITORY

    def _run_batch(
        self,
        package_ids: list[str],
        on_progress: ProgressCallback | None,
        on_complete: CompleteCallback | None,
    ) -> dict[str, bool]:
        results: dict[str, bool] = {}
        total = len(package_ids)
        try:
            service_up = self.is_service_available()
            installed: dict[str, str | None] = {}
            if service_up:
                installed = self._bounded(self.client.installed_versions, self.item_timeout, {})
            else:
                logger.info("Package service unreachable; %d packages left unknown", total)

            for index, package_id in enumerate(package_ids, start=1):
                try:
                    status = (
                        self._item_status(package_id, installed)
                        if service_up
                        else PackageStatus.UNKNOWN
                    )
                except Exception as exc:
                    logger.debug("Availability check for %s failed: %s", package_id, exc)
                    status = PackageStatus.NOT_IN_REPOSITORY
                record = AvailabilityRecord(status=status)
                results[package_id] = record.is_available
                self._post(self._record_progress, index, total, package_id, record, on_progress)
        finally:
            self._release_batch()
            self._post(self._finish_batch, dict(results), on_complete)
        return results

    def _record_progress(
        self,
        index: int,
        total: int,
        package_id: str,
        record: AvailabilityRecord,
        on_progress: ProgressCallback | None,
    ) -> None:
        self.status_cache[package_id] = record
        if on_progress is not None:
            on_progress(index, total, package_id, record.is_available)

    def _finish_batch(
        self, results: dict[str, bool], on_complete: CompleteCallback | None
    ) -> None:
        for record in self.status_cache.values():
            record.loading = False
        if on_complete is not None:
            on_complete(results)

    # ------------------------------------------------------------------
    # Installs
    # ------------------------------------------------------------------

    def submit_install(
        self,
        package_id: str,
        version: str | None = None,
        on_complete: InstallCallback | None = None,
    ) -> Future:
        """Install a package in the background; the result arrives through drain()."""

        def install() -> InstallResult:
            timed_out = InstallResult(
                success=False,
                error=(
                    f"Package installation for {package_id} timed out after "
                    f"{self.install_timeout:g} seconds"
                ),
                exit_code=-1,
            )
            result = self._bounded(
                lambda: self.client.add_package(package_id, version),
                self.install_timeout,
                timed_out,
            )
            self._post(self._finish_install, package_id, result, on_complete)
            return result

        return self._workers.submit(install)

    def _finish_install(
        self,
        package_id: str,
        result: InstallResult,
        on_complete: InstallCallback | None,
    ) -> None:
        if result.success:
            self.status_cache[package_id] = AvailabilityRecord(status=PackageStatus.INSTALLED)
        if on_complete is not None:
            on_complete(package_id, result)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Discard pending callbacks, stop the pools and reset the single-flight flag."""
        self._closed = True
        while True:
            try:
                self._callbacks.get_nowait()
            except queue.Empty:
                break
        self._workers.shutdown(wait=False, cancel_futures=True)
        self._calls.shutdown(wait=False, cancel_futures=True)
        self.reset_batch_flag()
