import pytest

from kasobserve.listers import InMemoryRecorder, Listers, NotFoundError
from kasobserve.resources import Authentication, Infrastructure
from kasobserve.serviceaccount_issuer import (
    check_issuer,
    observe_service_account_issuer,
    observed_config,
)

TEST_LB_URI = "https://lb.example.com/openid/v1/jwks"

AUTH_ERROR = RuntimeError("foo")
INFRA_ERROR = RuntimeError("bar")


def api_config_for_issuer(issuer):
    if not issuer:
        return {"apiServerArguments": {"service-account-jwks-uri": [TEST_LB_URI]}}
    return {"apiServerArguments": {"service-account-issuer": [issuer], "api-audiences": [issuer]}}


def _getters(issuer, auth_error=None, infra_error=None, internal_url="https://lb.example.com"):
    def get_auth(_name):
        if auth_error is not None:
            raise auth_error
        return Authentication(service_account_issuer=issuer)

    def get_infra(_name):
        if infra_error is not None:
            raise infra_error
        return Infrastructure(api_server_internal_url=internal_url)

    return get_auth, get_infra


@pytest.mark.parametrize(
    "issuer, existing_issuer, auth_error, infra_error, expected_issuer, expected_change",
    [
        ("", "", None, None, "", False),
        ("", "https://example.com", None, None, "", True),
        ("https://example.com", "", None, None, "https://example.com", True),
        ("https://example.com", "https://example.com", None, None, "https://example.com", False),
        ("https://example2.com", "https://example.com", None, None, "https://example2.com", True),
        ("https://example.com", "https://example2.com", AUTH_ERROR, None, "https://example2.com", False),
        ("", "https://example.com", None, INFRA_ERROR, "https://example.com", False),
    ],
    ids=[
        "no issuer, no previous issuer",
        "no issuer, previous issuer set",
        "issuer set, no previous issuer",
        "issuer set, previous issuer same",
        "issuer set, previous issuer different",
        "auth getter error",
        "infra getter error",
    ],
)
def test_observed_config(issuer, existing_issuer, auth_error, infra_error, expected_issuer, expected_change):
    recorder = InMemoryRecorder("SAIssuerTest")
    get_auth, get_infra = _getters(issuer, auth_error, infra_error)

    new_config, errs = observed_config(api_config_for_issuer(existing_issuer), get_auth, get_infra, recorder)

    if auth_error is None and infra_error is None:
        assert errs == []
    if auth_error is not None:
        assert auth_error in errs
    if infra_error is not None:
        assert infra_error in errs
    assert new_config == api_config_for_issuer(expected_issuer)
    assert expected_change == (len(recorder.events()) > 0)


def test_change_event_message():
    recorder = InMemoryRecorder("SAIssuerTest")
    get_auth, get_infra = _getters("https://example2.com")
    observed_config(api_config_for_issuer("https://example.com"), get_auth, get_infra, recorder)
    [event] = recorder.events()
    assert event.reason == "ObserveServiceAccountIssuer"
    assert event.message == "ServiceAccount issuer changed from https://example.com to https://example2.com"


def test_missing_auth_config_falls_back_to_jwks_uri():
    recorder = InMemoryRecorder("SAIssuerTest")
    _, get_infra = _getters("")

    def get_auth(_name):
        raise NotFoundError("cluster")

    new_config, errs = observed_config({}, get_auth, get_infra, recorder)
    assert errs == []
    assert new_config == api_config_for_issuer("")


def test_invalid_issuer_keeps_existing_config():
    recorder = InMemoryRecorder("SAIssuerTest")
    existing = api_config_for_issuer("https://example.com")
    get_auth, get_infra = _getters(":not-a-url")
    new_config, errs = observed_config(existing, get_auth, get_infra, recorder)
    assert new_config == existing
    assert len(errs) == 1
    assert "was not a valid URL" in str(errs[0])
    assert recorder.events() == []


def test_missing_internal_url_is_an_error():
    recorder = InMemoryRecorder("SAIssuerTest")
    existing = api_config_for_issuer("https://example.com")
    get_auth, get_infra = _getters("", internal_url="")
    new_config, errs = observed_config(existing, get_auth, get_infra, recorder)
    assert new_config == existing
    assert [str(err) for err in errs] == ["APIServerInternalURL missing from infrastructure/cluster"]


def test_malformed_existing_issuer_is_reported():
    recorder = InMemoryRecorder("SAIssuerTest")
    get_auth, get_infra = _getters("https://example.com")
    existing = {"apiServerArguments": {"service-account-issuer": "https://example.com"}}
    new_config, errs = observed_config(existing, get_auth, get_infra, recorder)
    assert len(errs) == 1
    assert "unable to extract service account issuer" in str(errs[0])
    assert new_config == api_config_for_issuer("https://example.com")


@pytest.mark.parametrize("issuer", ["no-colon-here", "https://example.com", "https://[::1]:6443/path", "urn:example"])
def test_check_issuer_accepts(issuer):
    assert check_issuer(issuer) is None


@pytest.mark.parametrize(
    "issuer",
    [
        ":no-scheme",
        "https://example.com:port/",
        "https://exa\x7fmple.com",
        "https://example.com/%zz",
        "1abc:def",
    ],
)
def test_check_issuer_rejects(issuer):
    with pytest.raises(ValueError, match="was not a valid URL"):
        check_issuer(issuer)


def test_observe_with_listers_sets_issuer():
    listers = Listers()
    listers.auth_config_lister.add(Authentication(service_account_issuer="https://example.com"))
    recorder = InMemoryRecorder("SAIssuerTest")
    result, errs = observe_service_account_issuer(listers, recorder, {})
    assert errs == []
    assert result == api_config_for_issuer("https://example.com")


def test_observe_with_listers_uses_load_balancer_without_issuer():
    listers = Listers()
    listers.infrastructure_lister.add(Infrastructure(api_server_internal_url="https://lb.example.com"))
    result, errs = observe_service_account_issuer(listers, InMemoryRecorder("SAIssuerTest"), {})
    assert errs == []
    assert result == api_config_for_issuer("")


def test_observe_prunes_unrelated_fields_on_error():
    listers = Listers()
    listers.auth_config_lister.add(Authentication(service_account_issuer=":bad"))
    existing = {
        "apiServerArguments": {"service-account-issuer": ["https://example.com"], "other": ["x"]},
        "unrelated": 1,
    }
    result, errs = observe_service_account_issuer(listers, InMemoryRecorder("SAIssuerTest"), existing)
    assert len(errs) == 1
    assert result == {"apiServerArguments": {"service-account-issuer": ["https://example.com"]}}