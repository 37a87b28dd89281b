import pytest

from kasobserve.images import (
    observe_allowed_registries_for_import,
    observe_external_registry_hostnames,
    observe_internal_registry_hostname,
)
from kasobserve.listers import InMemoryRecorder, Listers, ObjectLister
from kasobserve.nested import NestedFieldError, nested_slice, nested_string
from kasobserve.resources import Image, RegistryLocation

ALLOWED = [
    RegistryLocation(domain_name="insecuredomain", insecure=True),
    RegistryLocation(domain_name="securedomain1", insecure=True),
    RegistryLocation(domain_name="securedomain2"),
]

ALLOWED_DECODED = [
    {"domainName": "insecuredomain", "insecure": True},
    {"domainName": "securedomain1", "insecure": True},
    {"domainName": "securedomain2"},
]

CASES = [
    (
        Image(internal_registry_hostname="docker-registry.openshift-image-registry.svc.cluster.local:5000"),
        "docker-registry.openshift-image-registry.svc.cluster.local:5000",
        [],
        [],
        ["ObserveInternalRegistryHostnameChanged"],
    ),
    (Image(spec_external_registry_hostnames=[]), "", [], [], []),
    (
        Image(spec_external_registry_hostnames=["spec.external.host.com"]),
        "",
        ["spec.external.host.com"],
        [],
        ["ObserveExternalRegistryHostnameChanged"],
    ),
    (
        Image(status_external_registry_hostnames=["status.external.host.com"]),
        "",
        ["status.external.host.com"],
        [],
        ["ObserveExternalRegistryHostnameChanged"],
    ),
    (
        Image(
            spec_external_registry_hostnames=["spec.external.host.com"],
            status_external_registry_hostnames=["status.external.host.com"],
        ),
        "",
        ["spec.external.host.com", "status.external.host.com"],
        [],
        ["ObserveExternalRegistryHostnameChanged"],
    ),
    (
        Image(allowed_registries_for_import=list(ALLOWED)),
        "",
        [],
        ALLOWED_DECODED,
        ["ObserveAllowedRegistriesForImport"],
    ),
    (Image(allowed_registries_for_import=[]), "", [], [], []),
]


@pytest.mark.parametrize(
    "image, expected_internal, expected_external, expected_allowed, expected_reasons", CASES
)
def test_observe_image_config(image, expected_internal, expected_external, expected_allowed, expected_reasons):
    listers = Listers(image_config_lister=ObjectLister(image))
    recorder = InMemoryRecorder("")
    initial = {}

    observed, errs = observe_internal_registry_hostname(listers, recorder, initial)
    assert errs == []
    assert (nested_string(observed, "imagePolicyConfig", "internalRegistryHostname") or "") == expected_internal
    again, errs = observe_internal_registry_hostname(listers, recorder, observed)
    assert errs == []
    assert again == observed

    observed, errs = observe_external_registry_hostnames(listers, recorder, initial)
    assert errs == []
    assert (nested_slice(observed, "imagePolicyConfig", "externalRegistryHostnames") or []) == expected_external
    again, errs = observe_external_registry_hostnames(listers, recorder, observed)
    assert errs == []
    assert again == observed

    observed, errs = observe_allowed_registries_for_import(listers, recorder, initial)
    assert errs == []
    assert (nested_slice(observed, "imagePolicyConfig", "allowedRegistriesForImport") or []) == expected_allowed
    again, errs = observe_allowed_registries_for_import(listers, recorder, observed)
    assert errs == []
    assert again == observed

    assert [event.reason for event in recorder.events()] == expected_reasons


def test_missing_image_config_gives_empty_config():
    listers = Listers()
    recorder = InMemoryRecorder("")
    existing = {"imagePolicyConfig": {"internalRegistryHostname": "old.host"}}
    observed, errs = observe_internal_registry_hostname(listers, recorder, existing)
    assert observed == {}
    assert errs == []
    assert recorder.events() == []


def test_wrong_type_in_existing_config_is_reported():
    listers = Listers(image_config_lister=ObjectLister(Image()))
    existing = {"imagePolicyConfig": {"internalRegistryHostname": 5}}
    observed, errs = observe_internal_registry_hostname(listers, InMemoryRecorder(""), existing)
    assert observed == {}
    assert len(errs) == 1
    assert isinstance(errs[0], NestedFieldError)


class _FailingLister:
    def get(self, name):
        raise RuntimeError("boom")


def test_lister_failure_keeps_previous_external_hostnames():
    listers = Listers(image_config_lister=_FailingLister())
    existing = {"imagePolicyConfig": {"externalRegistryHostnames": ["a.example.com"]}}
    observed, errs = observe_external_registry_hostnames(listers, InMemoryRecorder(""), existing)
    assert observed == existing
    assert [str(err) for err in errs] == ["boom"]


def test_event_messages():
    image = Image(
        internal_registry_hostname="internal.host",
        spec_external_registry_hostnames=["a.com", "b.com"],
        allowed_registries_for_import=[RegistryLocation(domain_name="reg", insecure=True)],
    )
    listers = Listers(image_config_lister=ObjectLister(image))
    recorder = InMemoryRecorder("")
    observe_internal_registry_hostname(listers, recorder, {})
    observe_external_registry_hostnames(listers, recorder, {})
    observe_allowed_registries_for_import(listers, recorder, {})
    assert [event.message for event in recorder.events()] == [
        'Internal registry hostname changed to "internal.host"',
        "External registry hostname changed to [a.com b.com]",
        "Allowed registries for import changed to [{reg true}]",
    ]