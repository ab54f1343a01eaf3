"""Tests for patch_hub.packages.poller."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from patch_hub.models import InstallResult, PackageStatus
from patch_hub.packages.client import PackageServiceClient
from patch_hub.packages.poller import AvailabilityPoller


def _client(available: bool = True, installed: dict | None = None, package_available: bool = True):
    client = MagicMock(spec=PackageServiceClient)
    client.is_available.return_value = available
    client.installed_versions.return_value = installed or {}
    client.check_package_available.return_value = package_available
    return client


@pytest.fixture
def make_poller():
    pollers = []

    def _make(client, **kwargs) -> AvailabilityPoller:
        poller = AvailabilityPoller(client, **kwargs)
        pollers.append(poller)
        return poller

    yield _make
    for poller in pollers:
        poller.shutdown()


# ---------------------------------------------------------------------------
# check_batch
# ---------------------------------------------------------------------------

class TestCheckBatch:
    def test_statuses_progress_and_completion(self, make_poller):
        client = _client(installed={"com.a": "1.0"})
        client.check_package_available.side_effect = lambda pid: pid == "com.b"
        poller = make_poller(client)
        progress, completions = [], []

        future = poller.check_batch(
            ["com.a", "com.b", "com.c", "com.a"],
            on_progress=lambda *args: progress.append(args),
            on_complete=completions.append,
        )
        future.result(timeout=5)
        poller.drain()

        assert progress == [
            (1, 3, "com.a", True),
            (2, 3, "com.b", True),
            (3, 3, "com.c", False),
        ]
        assert completions == [{"com.a": True, "com.b": True, "com.c": False}]
        assert poller.status_cache["com.a"].status == PackageStatus.INSTALLED
        assert poller.status_cache["com.b"].status == PackageStatus.AVAILABLE
        assert poller.status_cache["com.c"].status == PackageStatus.NOT_IN_REPOSITORY
        assert not any(record.loading for record in poller.status_cache.values())
        assert AvailabilityPoller.is_batch_running() is False

    def test_callbacks_wait_for_drain(self, make_poller):
        poller = make_poller(_client())
        completions = []

        poller.check_batch(["com.a"], on_complete=completions.append).result(timeout=5)

        assert completions == []
        assert poller.status_cache["com.a"].loading is True
        assert poller.drain() == 2
        assert completions == [{"com.a": True}]

    def test_service_down_marks_unknown(self, make_poller):
        client = _client(available=False)
        poller = make_poller(client)
        progress, completions = [], []

        poller.check_batch(
            ["com.a", "com.b"],
            on_progress=lambda *args: progress.append(args),
            on_complete=completions.append,
        ).result(timeout=5)
        poller.drain()

        assert len(progress) == 2
        assert completions == [{"com.a": False, "com.b": False}]
        assert poller.status_cache["com.a"].status == PackageStatus.UNKNOWN
        client.check_package_available.assert_not_called()

    def test_empty_list_completes_with_empty_dict(self, make_poller):
        poller = make_poller(_client())
        completions = []

        assert poller.check_batch([], on_complete=completions.append) is None
        poller.drain()

        assert completions == [{}]
        assert AvailabilityPoller.is_batch_running() is False

    def test_concurrent_batch_gets_empty_result_without_blocking(self, make_poller):
        release = threading.Event()
        client = _client()
        client.is_available.side_effect = lambda: release.wait(5)
        first = make_poller(client, probe_timeout=5)
        second = make_poller(_client())
        first_done, second_done = [], []

        future = first.check_batch(["com.a"], on_complete=first_done.append)
        assert second.check_batch(["com.b"], on_complete=second_done.append) is None
        second.drain()
        assert second_done == [{}]

        release.set()
        future.result(timeout=5)
        first.drain()
        assert first_done == [{"com.a": True}]

    def test_flag_released_when_item_check_raises(self, make_poller):
        poller = make_poller(_client())
        completions = []

        with patch.object(poller, "_item_status", side_effect=RuntimeError("boom")):
            poller.check_batch(["com.a"], on_complete=completions.append).result(timeout=5)
        poller.drain()

        assert completions == [{"com.a": False}]
        assert poller.status_cache["com.a"].status == PackageStatus.NOT_IN_REPOSITORY
        assert AvailabilityPoller.is_batch_running() is False

    def test_flag_released_when_worker_fails(self, make_poller):
        poller = make_poller(_client())
        completions = []

        with patch.object(poller, "is_service_available", side_effect=RuntimeError("boom")):
            future = poller.check_batch(["com.a"], on_complete=completions.append)
            with pytest.raises(RuntimeError):
                future.result(timeout=5)
        poller.drain()

        assert completions == [{}]
        assert AvailabilityPoller.is_batch_running() is False


# ---------------------------------------------------------------------------
# Bounded synchronous checks
# ---------------------------------------------------------------------------

class TestBoundedChecks:
    def test_is_service_available_times_out(self, make_poller):
        release = threading.Event()
        client = _client()
        client.is_available.side_effect = lambda: release.wait(5)
        poller = make_poller(client, probe_timeout=0.05)

        assert poller.is_service_available() is False
        release.set()

    def test_check_package_error_is_false(self, make_poller):
        client = _client()
        client.check_package_available.side_effect = RuntimeError("down")
        assert make_poller(client).check_package("com.a") is False

    def test_is_package_installed(self, make_poller):
        client = _client()
        client.is_package_installed.return_value = True
        assert make_poller(client).is_package_installed("com.a") is True


# ---------------------------------------------------------------------------
# Installs and teardown
# ---------------------------------------------------------------------------

class TestInstallAndShutdown:
    def test_submit_install_updates_cache_on_drain(self, make_poller):
        client = _client()
        client.add_package.return_value = InstallResult(success=True, output="ok")
        poller = make_poller(client)
        results = []

        poller.submit_install("com.a", "1.0", on_complete=lambda pid, r: results.append((pid, r))).result(timeout=5)
        assert results == []
        poller.drain()

        assert results[0][0] == "com.a"
        assert results[0][1].success is True
        assert poller.status_cache["com.a"].status == PackageStatus.INSTALLED
        client.add_package.assert_called_once_with("com.a", "1.0")

    def test_submit_install_timeout(self, make_poller):
        release = threading.Event()
        client = _client()
        client.add_package.side_effect = lambda *args: release.wait(5)
        poller = make_poller(client, install_timeout=0.05)

        result = poller.submit_install("com.a").result(timeout=5)
        release.set()

        assert result.success is False
        assert "timed out" in result.error

    def test_shutdown_discards_pending_and_resets_flag(self, make_poller):
        poller = make_poller(_client())
        completions = []
        poller.check_batch(["com.a"], on_complete=completions.append).result(timeout=5)

        AvailabilityPoller._batch_running = True
        poller.shutdown()

        assert poller.drain() == 0
        assert completions == []
        assert AvailabilityPoller.is_batch_running() is False
