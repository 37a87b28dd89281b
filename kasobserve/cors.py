"""Observation of additional CORS allowed origins."""

from __future__ import annotations

import json
import logging

from .listers import NotFoundError
from .nested import NestedFieldError, nested_string_slice, set_nested_field

log = logging.getLogger(__name__)

CORS_ALLOWED_ORIGINS_PATH = ("corsAllowedOrigins",)

CLUSTER_DEFAULT_CORS_ALLOWED_ORIGINS = (
    r"//127\.0\.0\.1(:|$)",
    r"//localhost(:|$)",
)


def observe_additional_cors_allowed_origins(listers, recorder, existing_config):
    """Merge the cluster's additional CORS origins with the defaults.

    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    default_config = {}
    set_nested_field(default_config, list(CLUSTER_DEFAULT_CORS_ALLOWED_ORIGINS), *CORS_ALLOWED_ORIGINS_PATH)

    try:
        current = nested_string_slice(existing_config, *CORS_ALLOWED_ORIGINS_PATH) or []
    except NestedFieldError as err:
        return default_config, [err]
    current_set = set(current) | set(CLUSTER_DEFAULT_CORS_ALLOWED_ORIGINS)

    try:
        api_server = listers.api_server_lister.get("cluster")
    except NotFoundError:
        log.warning("apiserver.config.openshift.io/cluster: not found")
        return default_config, errs
    except Exception:
        return existing_config, errs

    new_set = set(CLUSTER_DEFAULT_CORS_ALLOWED_ORIGINS) | set(api_server.additional_cors_allowed_origins)
    new_list = sorted(new_set)
    observed_config = {}
    set_nested_field(observed_config, new_list, *CORS_ALLOWED_ORIGINS_PATH)

    if current_set != new_set:
        quoted = " ".join(json.dumps(origin) for origin in new_list)
        recorder.event("ObserveAdditionalCORSAllowedOrigins", f"corsAllowedOrigins changed to [{quoted}]")

    return observed_config, errs