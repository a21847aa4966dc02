import pytest

from cloudpoll._cogs.clients.api import Response
from cloudpoll._cogs.configs.configuration import ClientSettings
from cloudpoll._core.actions.classifiers import FatalFailure, Success, TransientFailure, default

MARKER = "Timeout talking to backend"


@pytest.mark.parametrize('status', [200, 201, 202, 204])
def test_successes(status):
    classifier = default()
    classification = classifier(Response(status=status, data={}))
    assert classification == Success()


@pytest.mark.parametrize('status', [400, 503])
def test_backend_timeouts_are_transient(status):
    classifier = default()
    classification = classifier(Response(status=status, failure={'error': MARKER}))
    assert isinstance(classification, TransientFailure)
    assert classification.reason == MARKER


@pytest.mark.parametrize('status', [404, 409, 500, 502])
def test_backend_timeouts_of_other_statuses_are_fatal(status):
    classifier = default()
    classification = classifier(Response(status=status, failure={'error': MARKER}))
    assert isinstance(classification, FatalFailure)


def test_other_errors_of_the_same_statuses_are_fatal():
    classifier = default()
    classification = classifier(Response(status=400, failure={'error': "Bad request"}))
    assert classification == FatalFailure("unexpected status 400: Bad request")


def test_marker_must_match_exactly():
    classifier = default()
    classification = classifier(Response(status=400, failure={'error': MARKER.lower()}))
    assert isinstance(classification, FatalFailure)


def test_business_error_codes_are_fatal_with_their_messages():
    classifier = default()
    failure = {'error_code': 40002, 'message': "disk too small"}
    classification = classifier(Response(status=400, failure=failure))
    assert classification == FatalFailure("disk too small")


def test_business_error_codes_without_messages():
    classifier = default()
    classification = classifier(Response(status=400, failure={'error_code': 40002}))
    assert classification == FatalFailure("error code 40002")


def test_not_found_is_fatal():
    classifier = default()
    classification = classifier(Response(status=404))
    assert classification == FatalFailure("not found")


@pytest.mark.parametrize('status', [401, 403, 409, 410, 418, 423, 429, 500])
def test_anything_else_is_unexpected(status):
    classifier = default()
    classification = classifier(Response(status=status))
    assert classification == FatalFailure(f"unexpected status {status}")


def test_unexpected_statuses_carry_the_remote_message():
    classifier = default()
    classification = classifier(Response(status=500, failure={'message': "boom"}))
    assert classification == FatalFailure("unexpected status 500: boom")


def test_custom_marker_from_settings():
    settings = ClientSettings()
    settings.polling.transient_marker = "Try again later"
    classifier = default(settings)
    assert isinstance(classifier(Response(400, failure={'error': "Try again later"})), TransientFailure)
    assert isinstance(classifier(Response(400, failure={'error': MARKER})), FatalFailure)


def test_custom_business_codes_from_settings():
    settings = ClientSettings()
    settings.polling.business_codes = (40002, 40009)
    classifier = default(settings)
    classification = classifier(Response(400, failure={'error_code': 40009, 'message': "no"}))
    assert classification == FatalFailure("no")


def test_rate_limits_are_fatal_by_default():
    classifier = default()
    classification = classifier(Response(status=429, retry_after=30))
    assert isinstance(classification, FatalFailure)


def test_rate_limits_are_transient_if_enabled():
    settings = ClientSettings()
    settings.polling.retry_rate_limits = True
    classifier = default(settings)
    classification = classifier(Response(status=429, retry_after=30))
    assert classification == TransientFailure("rate limit exceeded", retry_after=30)
