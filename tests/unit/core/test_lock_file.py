"""Tests for the advisory lock file utility."""

import pytest

from blueda.core.exceptions import LockFileError
from blueda.core.lock_file import LockFile, lock, unlock

pytestmark = [pytest.mark.unit]


class TestLockFunctions:

    def test_lock_creates_file(self, tmp_path):
        path = tmp_path / "resource.lock"
        assert lock(path, retries=0)
        assert path.exists()

    def test_second_lock_fails_after_retries(self, tmp_path):
        path = tmp_path / "resource.lock"
        assert lock(path, retries=0)
        assert not lock(path, retries=2, poll_interval=0.001)

    def test_unlock(self, tmp_path):
        path = tmp_path / "resource.lock"
        lock(path, retries=0)
        assert unlock(path)
        assert not path.exists()
        assert not unlock(path)

    def test_lock_again_after_unlock(self, tmp_path):
        path = tmp_path / "resource.lock"
        assert lock(path, retries=0)
        unlock(path)
        assert lock(path, retries=0)


class TestLockFile:

    def test_context_manager_releases(self, tmp_path):
        path = tmp_path / "resource.lock"
        with LockFile(path, retries=0) as held:
            assert held.acquired
            assert path.exists()
        assert not path.exists()

    def test_raises_when_retries_exhausted(self, tmp_path):
        path = tmp_path / "resource.lock"
        path.write_text("12345")
        with pytest.raises(LockFileError, match="still present after 1 retries"):
            with LockFile(path, retries=1, poll_interval=0.001):
                pass
        assert path.exists()

    def test_releases_on_exception(self, tmp_path):
        path = tmp_path / "resource.lock"
        with pytest.raises(RuntimeError):
            with LockFile(path, retries=0):
                raise RuntimeError("inside")
        assert not path.exists()

    def test_missing_directory_is_lock_error(self, tmp_path):
        with pytest.raises(LockFileError, match="Cannot create lock file"):
            lock(tmp_path / "missing" / "resource.lock", retries=0)
