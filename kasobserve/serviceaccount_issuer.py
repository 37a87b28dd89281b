"""Observation of the service account issuer."""

from __future__ import annotations

import json
import logging
import re

from .listers import NotFoundError
from .nested import NestedFieldError, nested_string_slice, pruned
from .resources import Authentication

log = logging.getLogger(__name__)

SERVICE_ACCOUNT_ISSUER_PATH = ("apiServerArguments", "service-account-issuer")
AUDIENCES_PATH = ("apiServerArguments", "api-audiences")
JWKS_URI_PATH = ("apiServerArguments", "service-account-jwks-uri")

_CONTROL_CHARACTER = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def observe_service_account_issuer(listers, recorder, existing_config):
    """Override the service-account-issuer argument from the authentication config.

    Returns the observed config, pruned to the issuer, audiences and JWKS URI
    paths, and the list of errors met on the way.
    """
    ret, errs = observed_config(
        existing_config,
        listers.auth_config_lister.get,
        listers.infrastructure_lister.get,
        recorder,
    )
    return pruned(ret, SERVICE_ACCOUNT_ISSUER_PATH, AUDIENCES_PATH, JWKS_URI_PATH), errs


def observed_config(existing_config, get_auth_config, get_infrastructure_config, recorder):
    """Return the config fragment for the issuer and the list of errors.

    With an issuer set it fills the issuer and the API audiences; without one
    it points the JWKS URI at the internal load balancer. The getters are
    called with the object name and raise on failure.
    """
    errs = []
    existing_issuer = ""
    try:
        existing_issuers = nested_string_slice(existing_config, *SERVICE_ACCOUNT_ISSUER_PATH)
    except NestedFieldError as err:
        errs.append(ValueError(f"unable to extract service account issuer from unstructured: {err}"))
    else:
        if existing_issuers:
            existing_issuer = existing_issuers[0]

    try:
        auth_config = get_auth_config("cluster")
    except NotFoundError:
        log.warning("authentications.config.openshift.io/cluster: not found")
        auth_config = Authentication()
    except Exception as err:
        return existing_config, errs + [err]

    new_issuer = auth_config.service_account_issuer
    try:
        check_issuer(new_issuer)
    except ValueError as err:
        return existing_config, errs + [err]

    if new_issuer:
        _record_change(recorder, existing_issuer, new_issuer)
        return {
            "apiServerArguments": {
                "service-account-issuer": [new_issuer],
                "api-audiences": [new_issuer],
            }
        }, errs

    try:
        infrastructure = get_infrastructure_config("cluster")
    except Exception as err:
        return existing_config, errs + [err]
    internal_url = infrastructure.api_server_internal_url
    if not internal_url:
        return existing_config, errs + [ValueError("APIServerInternalURL missing from infrastructure/cluster")]

    _record_change(recorder, existing_issuer, new_issuer)
    return {
        "apiServerArguments": {
            "service-account-jwks-uri": [internal_url + "/openid/v1/jwks"],
        }
    }, errs


def _record_change(recorder, existing_issuer, new_issuer):
    if existing_issuer != new_issuer:
        recorder.event(
            "ObserveServiceAccountIssuer",
            f"ServiceAccount issuer changed from {existing_issuer} to {new_issuer}",
        )


def check_issuer(issuer):
    """Raise ValueError if ``issuer`` contains a colon but is not a valid URL."""
    if ":" not in issuer:
        return None
    try:
        _parse_url(issuer)
    except ValueError as err:
        raise ValueError(f"service-account issuer contained a ':' but was not a valid URL: {err}") from err
    return None


def _parse_url(raw):
    """Validate ``raw`` with the rules of a lenient URL parser."""
    quoted = json.dumps(raw)
    if _CONTROL_CHARACTER.search(raw):
        raise ValueError(f"parse {quoted}: invalid control character in URL")

    main, _, fragment = raw.partition("#")
    main, _, _query = main.partition("?")
    for part in (main, fragment):
        bad = _BAD_ESCAPE.search(part)
        if bad:
            raise ValueError(f"parse {quoted}: invalid URL escape {json.dumps(part[bad.start():bad.start() + 3])}")

    scheme, rest = _split_scheme(raw, main)
    if not scheme and not rest.startswith("/"):
        first_segment = rest.partition("/")[0]
        if ":" in first_segment:
            raise ValueError(f"parse {quoted}: first path segment in URL cannot contain colon")

    if rest.startswith("//"):
        authority = rest[2:].partition("/")[0]
        host = authority.rpartition("@")[2]
        _check_host_port(quoted, host)


def _split_scheme(raw, main):
    for index, char in enumerate(main):
        if char.isascii() and char.isalpha():
            continue
        if char.isascii() and (char.isdigit() or char in "+-."):
            if index == 0:
                return "", main
            continue
        if char == ":":
            if index == 0:
                raise ValueError(f"parse {json.dumps(raw)}: missing protocol scheme")
            return main[:index].lower(), main[index + 1:]
        return "", main
    return "", main


def _check_host_port(quoted, host):
    if host.startswith("["):
        closing = host.find("]")
        if closing < 0:
            raise ValueError(f"parse {quoted}: missing ']' in host")
        port_part = host[closing + 1:]
        if port_part and not port_part.startswith(":"):
            raise ValueError(f"parse {quoted}: invalid port {json.dumps(port_part)} after host")
    else:
        colon = host.rfind(":")
        port_part = host[colon:] if colon >= 0 else ""
    if port_part and not port_part[1:].isdigit() and port_part != ":":
        raise ValueError(f"parse {quoted}: invalid port {json.dumps(port_part)} after host")
    if port_part[1:] and not port_part[1:].isascii():
        raise ValueError(f"parse {quoted}: invalid port {json.dumps(port_part)} after host")