from __future__ import annotations

from typing import Any

import pytest

from issuedigest import retry
from issuedigest.github_rest import GitHubAPIError
from issuedigest.retry import RetryConfig, run_with_retries

RETRY_AFTER_SECONDS = 7.0


def _error(message: str, status: int | None = None, body: str | None = None) -> GitHubAPIError:
    return GitHubAPIError(message, status=status, response_text=body)


def test_is_transient_tokens_and_statuses():
    assert retry.is_transient('Rate Limit exceeded')
    assert retry.is_transient('secondary rate limit triggered')
    assert retry.is_transient('ABUSE DETECTION mechanism')
    assert retry.is_transient('', status=503)
    assert not retry.is_transient('some other error', status=404)


def test_run_with_retries_transient_then_success():
    attempts: list[int] = []
    sleeps: list[float] = []

    def fn() -> str:
        attempts.append(1)
        if len(attempts) < 2:
            raise _error('boom', status=429)
        return 'ok'

    result = run_with_retries(fn, cfg=RetryConfig(attempts=3, base_sleep=0.01), sleep=sleeps.append)
    assert result == 'ok'
    assert len(attempts) == 2
    assert len(sleeps) == 1


def test_run_with_retries_non_transient_raises_immediately():
    attempts: list[int] = []

    def fn() -> None:
        attempts.append(1)
        raise _error('not found', status=404)

    with pytest.raises(GitHubAPIError):
        run_with_retries(fn, cfg=RetryConfig(attempts=4, base_sleep=0.0), sleep=lambda _: None)
    assert len(attempts) == 1


def test_run_with_retries_transient_exhausts():
    attempts: list[int] = []

    def fn() -> None:
        attempts.append(1)
        raise _error('failed', body='secondary rate limit inner error')

    cfg = RetryConfig(attempts=3, base_sleep=0.0)
    with pytest.raises(GitHubAPIError):
        run_with_retries(fn, cfg=cfg, sleep=lambda _: None)
    assert len(attempts) == cfg.attempts


def test_retry_honors_retry_after():
    sleeps: list[float] = []
    state = {'count': 0}

    def fn() -> str:
        state['count'] += 1
        if state['count'] == 1:
            raise _error('Rate limit hit. Retry-After: 7', status=403)
        return 'ok'

    assert run_with_retries(fn, cfg=RetryConfig(attempts=3, base_sleep=0.01), sleep=sleeps.append) == 'ok'
    assert sleeps == [RETRY_AFTER_SECONDS]


def test_retry_max_sleep_cap(monkeypatch: Any):
    monkeypatch.setenv('ISSUEDIGEST_RETRY_MAX_SLEEP', '2')
    sleeps: list[float] = []
    state = {'count': 0}

    def fn() -> str:
        state['count'] += 1
        if state['count'] == 1:
            raise _error('please wait 30 seconds', status=429)
        return 'ok'

    run_with_retries(fn, cfg=RetryConfig(attempts=2, base_sleep=0.01), sleep=sleeps.append)
    assert sleeps == [2.0]


def test_retry_config_reads_environment(monkeypatch: Any):
    monkeypatch.setenv('ISSUEDIGEST_RETRY_ATTEMPTS', '5')
    monkeypatch.setenv('ISSUEDIGEST_RETRY_BASE', '1.5')
    cfg = RetryConfig()
    assert cfg.attempts == 5
    assert cfg.base_sleep == 1.5


def test_retry_config_ignores_garbage_environment(monkeypatch: Any):
    monkeypatch.setenv('ISSUEDIGEST_RETRY_ATTEMPTS', 'many')
    assert RetryConfig().attempts == 3


def test_extract_explicit_backoff():
    assert retry._extract_explicit_backoff('retry after 12') == 12.0
    assert retry._extract_explicit_backoff('wait 30 seconds') == 30.0
    assert retry._extract_explicit_backoff('Retry-After: 0') is None
    assert retry._extract_explicit_backoff('') is None


def test_header_retry_after_beats_text_hint(monkeypatch: Any):
    monkeypatch.delenv('ISSUEDIGEST_RETRY_MAX_SLEEP', raising=False)
    sleeps: list[float] = []
    state = {'count': 0}

    def fn() -> str:
        state['count'] += 1
        if state['count'] == 1:
            raise GitHubAPIError('rate limit, wait 30 seconds', status=429, retry_after=4.0)
        return 'ok'

    assert run_with_retries(fn, cfg=RetryConfig(attempts=2, base_sleep=0.01), sleep=sleeps.append) == 'ok'
    assert sleeps == [4.0]
