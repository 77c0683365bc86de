import asyncio

import pytest

from activity_tracker.git import IgnoreStatus
from activity_tracker.ignore_cache import IgnoreCache

from conftest import FakeIgnoreChecker

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


async def test_ignored_path_is_cached_and_never_rechecked():
    checker = FakeIgnoreChecker(default=IgnoreStatus.IGNORED)
    cache = IgnoreCache(checker)

    assert await cache.is_ignored("/src/proj/.env", file_changed=True) is True
    for _ in range(3):
        assert await cache.is_ignored("/src/proj/.env", file_changed=True) is True

    assert checker.calls == ["/src/proj/.env"]
    assert "/src/proj/.env" in cache
    assert len(cache) == 1


async def test_not_ignored_path_is_not_cached():
    checker = FakeIgnoreChecker(default=IgnoreStatus.NOT_IGNORED)
    cache = IgnoreCache(checker)

    assert await cache.is_ignored("/src/proj/app.py", file_changed=True) is False
    assert await cache.is_ignored("/src/proj/app.py", file_changed=True) is False

    assert checker.calls == ["/src/proj/app.py", "/src/proj/app.py"]
    assert not cache.contains("/src/proj/app.py")


async def test_unknown_status_fails_closed():
    checker = FakeIgnoreChecker(default=IgnoreStatus.UNKNOWN)
    cache = IgnoreCache(checker)

    assert await cache.is_ignored("/outside/repo.txt", file_changed=True) is True
    assert cache.contains("/outside/repo.txt")


async def test_unchanged_file_skips_external_check():
    checker = FakeIgnoreChecker(default=IgnoreStatus.IGNORED)
    cache = IgnoreCache(checker)

    assert await cache.is_ignored("/src/proj/app.py", file_changed=False) is False
    assert checker.calls == []


async def test_cancelled_check_does_not_populate_cache():
    checker = FakeIgnoreChecker(default=IgnoreStatus.IGNORED, delay=10)
    cache = IgnoreCache(checker)

    task = asyncio.ensure_future(cache.is_ignored("/src/proj/slow.py", file_changed=True))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not cache.contains("/src/proj/slow.py")
