import pytest

from cloudpoll._cogs.clients.api import Response
from cloudpoll._core.actions.classifiers import (
    FatalFailure, Success, TransientFailure, on_absence, on_error_code, on_locked,
    on_marker, on_not_found, on_rate_limit, on_status, on_success, unexpected,
)


def test_status_rule_matches():
    rule = on_status((400,), TransientFailure("not ready"))
    assert rule(Response(status=400)) == TransientFailure("not ready")


def test_status_rule_passes():
    rule = on_status((400,), TransientFailure("not ready"))
    assert rule(Response(status=200)) is None


def test_success_rule_with_custom_statuses():
    rule = on_success((200,))
    assert rule(Response(status=200)) == Success()
    assert rule(Response(status=202)) is None


def test_marker_rule_with_custom_statuses():
    rule = on_marker("busy", statuses=(409,))
    assert rule(Response(status=409, failure={'error': "busy"})) == TransientFailure("busy")
    assert rule(Response(status=400, failure={'error': "busy"})) is None


def test_marker_rule_with_no_failure_body():
    rule = on_marker("busy")
    assert rule(Response(status=400)) is None


@pytest.mark.parametrize('failure, reason', [
    pytest.param({'error_code': 40001, 'message': "msg", 'error': "err"}, "msg", id='message'),
    pytest.param({'error_code': 40001, 'error': "err"}, "err", id='error'),
    pytest.param({'error_code': 40001}, "error code 40001", id='code'),
])
def test_error_code_rule_reasons(failure, reason):
    rule = on_error_code((40001,))
    assert rule(Response(status=400, failure=failure)) == FatalFailure(reason)


def test_error_code_rule_as_transient():
    rule = on_error_code((40001, 40003), transient=True)
    classification = rule(Response(status=400, failure={'error_code': 40003, 'message': "later"}))
    assert classification == TransientFailure("later")


def test_error_code_rule_passes_other_codes():
    rule = on_error_code((40001,))
    assert rule(Response(status=400, failure={'error_code': 40002})) is None
    assert rule(Response(status=500, failure={'error_code': 40001})) is None


def test_not_found_rule():
    rule = on_not_found()
    assert rule(Response(status=404)) == FatalFailure("not found")
    assert rule(Response(status=410)) is None


@pytest.mark.parametrize('status', [404, 410])
def test_absence_rule_matches(status):
    rule = on_absence()
    assert rule(Response(status=status)) == Success(absent=True)


def test_absence_rule_passes():
    rule = on_absence()
    assert rule(Response(status=200)) is None


def test_rate_limit_rule_carries_the_suggested_delay():
    rule = on_rate_limit()
    classification = rule(Response(status=429, retry_after=12))
    assert isinstance(classification, TransientFailure)
    assert classification.retry_after == 12


def test_locked_rule():
    rule = on_locked()
    assert rule(Response(status=423)) == TransientFailure("resource is locked")
    assert rule(Response(status=423, failure={'message': "busy"})) == TransientFailure("busy")
    assert rule(Response(status=400)) is None


def test_unexpected_fallback():
    assert unexpected(Response(status=418)) == FatalFailure("unexpected status 418")
