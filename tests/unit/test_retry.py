import pytest

from seoflow.utils.retry import compute_backoff, retry_async


def test_compute_backoff_grows_exponentially():
    assert compute_backoff(1, base=1, jitter=0) == 1
    assert compute_backoff(3, base=1, jitter=0) == 4
    assert 0.5 <= compute_backoff(1) <= 0.6


@pytest.mark.asyncio
async def test_retry_async_succeeds_after_failures():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("down")
        return "ok"

    assert await retry_async(flaky, retries=2, base=0, jitter=0) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_retry_async_reraises_last_error():
    attempts = []

    async def broken():
        attempts.append(1)
        raise ConnectionError(f"attempt {len(attempts)}")

    with pytest.raises(ConnectionError, match="attempt 2"):
        await retry_async(broken, retries=1, base=0, jitter=0)
    assert len(attempts) == 2
