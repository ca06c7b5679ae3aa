from __future__ import annotations

from issuedigest.errors import DigestError, InputError, TrackerError, classify_error, redact
from issuedigest.github_rest import GitHubAPIError


def test_classify_rate_limit():
    info = classify_error(RuntimeError('API Rate Limit Exceeded'))
    assert info.category == 'github.rate_limit'
    assert info.transient is True


def test_classify_rate_limit_by_status():
    info = classify_error(GitHubAPIError('failed', status=429))
    assert info.category == 'github.rate_limit'
    assert info.details == {'status': 429}


def test_classify_abuse():
    info = classify_error(RuntimeError('Abuse detection triggered'))
    assert info.category == 'github.abuse'
    assert info.transient is True


def test_classify_auth():
    assert classify_error(GitHubAPIError('failed', status=401)).category == 'github.auth'
    assert classify_error(RuntimeError('Bad credentials')).category == 'github.auth'


def test_classify_network():
    info = classify_error(RuntimeError('Connection reset by peer'))
    assert info.category == 'network'
    assert info.transient is True


def test_classify_input_and_parse():
    assert classify_error(InputError('milestone must be positive')).category == 'input'
    info = classify_error(RuntimeError('YAML ScannerError near line 3'))
    assert info.category == 'parse'
    assert info.transient is False


def test_classify_generic():
    info = classify_error(ValueError('Some other problem'))
    assert info.category == 'generic'
    assert info.original_type == 'ValueError'


def test_redact_tokens():
    sample = (
        "Token ghp_ABCDEFGHIJKLMNOPQRSTUVWX plus github_pat_1234567890abcdefghijkl "
        "and header Bearer abcdefghijklmnopqrstuvwxyz123456"
    )
    redacted = redact(sample)
    assert 'ghp_' not in redacted
    assert 'github_pat_' not in redacted
    assert 'abcdefghijklmnopqrstuvwxyz123456' not in redacted
    assert redacted.count('<redacted>') == 3
    assert redact('') == ''


def test_tracker_error_carries_operation_and_response():
    cause = GitHubAPIError('GitHub API GET x failed with 404', status=404, response_text='{"message": "Not Found"}')
    err = TrackerError('get milestone #3', cause)
    assert isinstance(err, DigestError)
    assert err.operation == 'get milestone #3'
    assert err.status == 404
    assert str(err) == (
        'failed to get milestone #3: GitHub API GET x failed with 404 ({"message": "Not Found"})'
    )


def test_tracker_error_without_http_details():
    err = TrackerError('list open milestones', ConnectionError('connection refused'))
    assert err.status is None
    assert str(err) == 'failed to list open milestones: connection refused'
