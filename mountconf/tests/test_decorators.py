# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import time
from typing import List
from unittest.mock import call, create_autospec, MagicMock

import pytest

from mountconf.monitoring.decorators import log_error, OutOfRetries, Retry, retry


class TestRetry:
    @staticmethod
    def test_no_throw() -> None:
        f = MagicMock()
        retryable_f = retry(delays=lambda: [10])(f)

        rv = retryable_f(1, "foo", bar=None)

        assert rv is f.return_value
        f.assert_called_once_with(1, "foo", bar=None)

    @staticmethod
    @pytest.mark.parametrize(
        "side_effect, delays",
        [
            ([Retry()], []),
            ([Retry(), Retry()], [10]),
            ([Retry(), Retry(), Retry()], [1, 1]),
        ],
    )
    def test_throws_when_out_of_retries(
        side_effect: List[Exception], delays: List[int]
    ) -> None:
        stub_sleep = create_autospec(spec=time.sleep)
        f = MagicMock(__name__="publish")
        f.side_effect = side_effect
        retryable_f = retry(delays=lambda: delays, sleep=stub_sleep)(f)

        with pytest.raises(OutOfRetries, match=f"after {len(delays) + 1} tries"):
            retryable_f()

        assert f.call_count == len(delays) + 1
        assert stub_sleep.call_args_list == [call(x) for x in delays]

    @staticmethod
    def test_succeeds_after_retry() -> None:
        stub_sleep = create_autospec(spec=time.sleep)
        f = MagicMock(__name__="publish")
        f.side_effect = [Retry(), "done"]
        retryable_f = retry(delays=lambda: [3, 3], sleep=stub_sleep)(f)

        assert retryable_f() == "done"
        stub_sleep.assert_called_once_with(3)

    @staticmethod
    def test_propagates_non_retryable_exception() -> None:
        stub_sleep = create_autospec(spec=time.sleep)
        f = MagicMock()
        f.side_effect = KeyError("nope")
        retryable_f = retry(delays=lambda: [10], sleep=stub_sleep)(f)

        with pytest.raises(KeyError):
            retryable_f()

        stub_sleep.assert_not_called()


def test_log_error(caplog: pytest.LogCaptureFixture) -> None:
    @log_error("test_log_error", return_on_error="fallback")
    def boom() -> str:
        raise RuntimeError("boom")

    assert boom() == "fallback"
    assert "boom failed" in caplog.text
