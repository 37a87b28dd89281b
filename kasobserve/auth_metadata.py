"""Observation of the OAuth metadata file referenced by the authentication config."""

from __future__ import annotations

import copy
import logging

from .listers import NotFoundError, ResourceLocation
from .nested import NestedFieldError, nested_string, set_nested_field
from .resources import AUTHENTICATION_TYPE_INTEGRATED_OAUTH

log = logging.getLogger(__name__)

TARGET_NAMESPACE = "openshift-kube-apiserver"
OAUTH_METADATA_FILE_PATH = "/etc/kubernetes/static-pod-resources/configmaps/oauth-metadata/oauthMetadata"
CONFIG_NAMESPACE = "openshift-config"
MANAGED_NAMESPACE = "openshift-config-managed"

METADATA_FILE_CONFIG_PATH = ("authConfig", "oauthMetadataFile")


def _defaulted(auth_config):
    """Return a copy of ``auth_config`` with the authentication type defaulted."""
    out = copy.deepcopy(auth_config)
    if not out.type:
        out.type = AUTHENTICATION_TYPE_INTEGRATED_OAUTH
    return out


def observe_auth_metadata(listers, recorder, existing_config):
    """Point authConfig.oauthMetadataFile at the config map named by the authentication config.

    The user-specified config map takes precedence over the one published in
    status. The chosen config map is synced into the target namespace; when
    neither is set the synced copy is deleted and the field is unset.
    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    prev_observed = {}

    try:
        current_path = nested_string(existing_config, *METADATA_FILE_CONFIG_PATH) or ""
    except NestedFieldError as err:
        errs.append(err)
        current_path = ""
    if current_path:
        set_nested_field(prev_observed, current_path, *METADATA_FILE_CONFIG_PATH)

    observed = {}
    try:
        auth_no_defaults = listers.auth_config_lister.get("cluster")
    except NotFoundError:
        log.warning("authentications.config.openshift.io/cluster: not found")
        return observed, errs
    except Exception as err:
        errs.append(err)
        return prev_observed, errs

    auth_config = _defaulted(auth_no_defaults)

    status_config_map = ""
    if auth_config.integrated_oauth_metadata and auth_config.type == AUTHENTICATION_TYPE_INTEGRATED_OAUTH:
        status_config_map = auth_config.integrated_oauth_metadata
    else:
        log.debug("no integrated oauth metadata configmap observed from status")

    source_namespace = ""
    source_config_map = ""
    if auth_config.oauth_metadata:
        source_config_map = auth_config.oauth_metadata
        source_namespace = CONFIG_NAMESPACE
    elif status_config_map:
        source_config_map = status_config_map
        source_namespace = MANAGED_NAMESPACE
    else:
        log.debug("no authentication config metadata specified")

    try:
        listers.resource_syncer.sync_config_map(
            ResourceLocation(namespace=TARGET_NAMESPACE, name="oauth-metadata"),
            ResourceLocation(namespace=source_namespace, name=source_config_map),
        )
    except Exception as err:
        errs.append(err)
        return prev_observed, errs

    if not source_config_map:
        return observed, errs

    set_nested_field(observed, OAUTH_METADATA_FILE_PATH, *METADATA_FILE_CONFIG_PATH)
    return observed, errs