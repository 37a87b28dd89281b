"""Observation of image registry settings of the cluster image configuration."""

from __future__ import annotations

import json
import logging

from .listers import NotFoundError
from .nested import (
    NestedFieldError,
    nested_slice,
    nested_string,
    nested_string_slice,
    set_nested_field,
)

log = logging.getLogger(__name__)

INTERNAL_REGISTRY_HOSTNAME_PATH = ("imagePolicyConfig", "internalRegistryHostname")
EXTERNAL_REGISTRY_HOSTNAMES_PATH = ("imagePolicyConfig", "externalRegistryHostnames")
ALLOWED_REGISTRIES_FOR_IMPORT_PATH = ("imagePolicyConfig", "allowedRegistriesForImport")


def _semantic_equal(left, right):
    """Compare two lists, treating an absent list and an empty one as equal."""
    return (left or []) == (right or [])


def _format_list(items):
    return "[" + " ".join(str(item) for item in items) + "]"


def _format_registries(registries):
    parts = (
        f"{{{registry.domain_name} {'true' if registry.insecure else 'false'}}}"
        for registry in registries
    )
    return _format_list(parts)


def _convert(registries):
    """Return the JSON-decoded form of the registry locations."""
    return json.loads(json.dumps([registry.to_dict() for registry in registries]))


def observe_internal_registry_hostname(listers, recorder, existing_config):
    """Read the internal registry hostname published by the registry operator.

    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    prev_observed = {}
    try:
        current = nested_string(existing_config, *INTERNAL_REGISTRY_HOSTNAME_PATH) or ""
    except NestedFieldError as err:
        return prev_observed, [err]
    if current:
        set_nested_field(prev_observed, current, *INTERNAL_REGISTRY_HOSTNAME_PATH)

    observed = {}
    try:
        config_image = listers.image_config_lister.get("cluster")
    except NotFoundError:
        log.warning("image.config.openshift.io/cluster: not found")
        return observed, errs
    except Exception:
        return prev_observed, errs

    hostname = config_image.internal_registry_hostname
    if hostname:
        set_nested_field(observed, hostname, *INTERNAL_REGISTRY_HOSTNAME_PATH)
        if hostname != current:
            recorder.event(
                "ObserveInternalRegistryHostnameChanged",
                f"Internal registry hostname changed to {json.dumps(hostname)}",
            )
    return observed, errs


def observe_external_registry_hostnames(listers, recorder, existing_config):
    """Map user-provided and generated external registry hostnames into the config.

    User-provided hostnames come first. Returns the observed config and the
    list of errors met on the way.
    """
    errs = []
    prev_observed = {}
    try:
        existing = nested_string_slice(existing_config, *EXTERNAL_REGISTRY_HOSTNAMES_PATH)
    except NestedFieldError as err:
        return prev_observed, [err]
    if existing:
        set_nested_field(prev_observed, existing, *EXTERNAL_REGISTRY_HOSTNAMES_PATH)

    observed = {}
    try:
        config_image = listers.image_config_lister.get("cluster")
    except NotFoundError:
        log.warning("image.config.openshift.io/cluster: not found")
        return observed, errs
    except Exception as err:
        return prev_observed, errs + [err]

    hostnames = list(config_image.spec_external_registry_hostnames) + list(
        config_image.status_external_registry_hostnames
    )
    if hostnames:
        set_nested_field(observed, hostnames, *EXTERNAL_REGISTRY_HOSTNAMES_PATH)

    if not _semantic_equal(existing, hostnames):
        recorder.event(
            "ObserveExternalRegistryHostnameChanged",
            f"External registry hostname changed to {_format_list(hostnames)}",
        )
    return observed, errs


def observe_allowed_registries_for_import(listers, recorder, existing_config):
    """Map the registries allowed for image import into the config.

    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    prev_observed = {}
    try:
        existing = nested_slice(existing_config, *ALLOWED_REGISTRIES_FOR_IMPORT_PATH)
    except NestedFieldError as err:
        return prev_observed, [err]
    if existing:
        set_nested_field(prev_observed, existing, *ALLOWED_REGISTRIES_FOR_IMPORT_PATH)

    observed = {}
    try:
        config_image = listers.image_config_lister.get("cluster")
    except NotFoundError:
        log.warning("image.config.openshift.io/cluster: not found")
        return observed, errs
    except Exception as err:
        return prev_observed, errs + [err]

    registries = config_image.allowed_registries_for_import
    if registries:
        set_nested_field(observed, _convert(registries), *ALLOWED_REGISTRIES_FOR_IMPORT_PATH)

    try:
        new_allowed = nested_slice(observed, *ALLOWED_REGISTRIES_FOR_IMPORT_PATH)
        changed = not _semantic_equal(existing, new_allowed)
    except NestedFieldError:
        changed = True
    if changed:
        recorder.event(
            "ObserveAllowedRegistriesForImport",
            f"Allowed registries for import changed to {_format_registries(registries)}",
        )
    return observed, errs