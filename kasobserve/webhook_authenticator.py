"""Observation of the webhook token authenticator."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field

import yaml

from .listers import NotFoundError, ResourceLocation
from .nested import NestedFieldError, nested_slice, set_nested_field

TARGET_NAMESPACE = "openshift-kube-apiserver"
GLOBAL_USER_SPECIFIED_CONFIG_NAMESPACE = "openshift-config"

WEBHOOK_TOKEN_AUTHENTICATOR_PATH = ("apiServerArguments", "authentication-token-webhook-config-file")
WEBHOOK_TOKEN_AUTHENTICATOR_FILE = ("/etc/kubernetes/static-pod-resources/secrets/webhook-authenticator/kubeConfig",)
WEBHOOK_TOKEN_AUTHENTICATOR_VERSION_PATH = ("apiServerArguments", "authentication-token-webhook-version")
WEBHOOK_TOKEN_AUTHENTICATOR_VERSION = ("v1",)

_DATA_FIELDS = ("certificate-authority-data", "client-certificate-data", "client-key-data")


class FieldError(ValueError):
    """A validation error tied to a field path of a kubeconfig."""

    def __init__(self, path, message):
        super().__init__(message)
        self.path = path


def _format_value(value):
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


def _required(path, detail=""):
    message = f"{path}: Required value"
    if detail:
        message += f": {detail}"
    return FieldError(path, message)


def _invalid(path, value, detail):
    return FieldError(path, f"{path}: Invalid value: {_format_value(value)}: {detail}")


def _key(path, key):
    return f"{path}[{key}]"


def _child(path, name):
    return f"{path}.{name}"


def _field_redirect(path, value, orig_field, new_field):
    return _invalid(
        _child(path, orig_field),
        value,
        f"use {json.dumps(_child(path, new_field))} with the direct content of the file instead",
    )


def _aggregate(errors):
    messages = list(dict.fromkeys(str(err) for err in errors))
    if len(messages) == 1:
        return messages[0]
    return "[" + ", ".join(messages) + "]"


@dataclass
class _Kubeconfig:
    clusters: dict = field(default_factory=dict)
    users: dict = field(default_factory=dict)
    contexts: dict = field(default_factory=dict)
    current_context: str = ""


def _named_entries(doc, key, inner):
    entries = doc.get(key) or []
    if not isinstance(entries, list):
        raise ValueError(f"{key} must be a list")
    result = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"entries of {key} must be mappings")
        body = entry.get(inner) or {}
        if not isinstance(body, dict):
            raise ValueError(f"{inner} of {key} entry {entry.get('name', '')!r} must be a mapping")
        for data_field in _DATA_FIELDS:
            if body.get(data_field):
                try:
                    base64.b64decode(str(body[data_field]), validate=True)
                except (binascii.Error, ValueError) as err:
                    raise ValueError(f"illegal base64 data in {data_field}: {err}") from err
        result[str(entry.get("name", ""))] = body
    return result


def _load_kubeconfig(raw):
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        raise ValueError(str(err)) from err
    if doc is None:
        doc = {}
    if not isinstance(doc, dict):
        raise ValueError("kubeconfig must be a mapping")
    return _Kubeconfig(
        clusters=_named_entries(doc, "clusters", "cluster"),
        users=_named_entries(doc, "users", "user"),
        contexts=_named_entries(doc, "contexts", "context"),
        current_context=str(doc.get("current-context") or ""),
    )


def validate_kubeconfig_secret(secret):
    """Return the list of problems with the kubeconfig held in ``secret``."""
    if "kubeConfig" not in secret.data:
        return [ValueError("missing required 'kubeConfig' key")]
    raw = secret.data["kubeConfig"]
    if not raw:
        return [ValueError("the 'kubeConfig' key is empty")]
    try:
        kubeconfig = _load_kubeconfig(raw)
    except ValueError as err:
        failure = ValueError(f"failed to load kubeconfig: {err}")
        failure.__cause__ = err
        return [failure]

    return (
        _validate_clusters(kubeconfig.clusters)
        + _validate_users(kubeconfig.users)
        + _validate_contexts(kubeconfig)
    )


def _validate_clusters(clusters):
    errs = []
    clusters_path = "clusters"
    if len(clusters) != 1:
        errs.append(_invalid(clusters_path, sorted(clusters), "expected a single cluster"))
    for name, cluster in clusters.items():
        current = _key(clusters_path, name)
        if not cluster.get("server"):
            errs.append(_required(_child(current, "server")))
        ca_file = cluster.get("certificate-authority")
        if ca_file:
            errs.append(_field_redirect(current, ca_file, "certificate-authority", "certificate-authority-data"))
    return errs


def _validate_users(users):
    errs = []
    users_path = "users"
    if len(users) != 1:
        errs.append(_invalid(users_path, sorted(users), "expected a single user"))
    for name, user in users.items():
        current = _key(users_path, name)
        if user.get("username"):
            if not user.get("password"):
                errs.append(_required(_child(current, "password"), "required when 'username' is set"))
        elif user.get("client-certificate-data"):
            if not user.get("client-key-data"):
                errs.append(
                    _required(_child(current, "client-key-data"), "required when 'client-certificate-data' is set")
                )
        elif user.get("token"):
            pass
        else:
            errs.append(_required(current, "at least one authentication mechanism needs to be configured"))

        for orig_field, new_field in (
            ("client-certificate", "client-certificate-data"),
            ("client-key", "client-key-data"),
            ("tokenFile", "token"),
        ):
            value = user.get(orig_field)
            if value:
                errs.append(_field_redirect(current, value, orig_field, new_field))
    return errs


def _validate_contexts(kubeconfig):
    errs = []
    if not kubeconfig.current_context:
        errs.append(_required("current-context"))
    contexts_path = "contexts"
    if len(kubeconfig.contexts) != 1:
        errs.append(_invalid(contexts_path, sorted(kubeconfig.contexts), "expected a single value"))

    selected = kubeconfig.contexts.get(kubeconfig.current_context)
    if selected is None:
        errs.append(
            _invalid(
                "current-context",
                kubeconfig.current_context,
                "does not appear to be present in the 'contexts' field",
            )
        )
        return errs

    current = _key(contexts_path, kubeconfig.current_context)
    user = str(selected.get("user") or "")
    if user not in kubeconfig.users:
        errs.append(_invalid(_child(current, "user"), user, "this value cannot be found in 'users'"))
    cluster = str(selected.get("cluster") or "")
    if cluster not in kubeconfig.clusters:
        errs.append(_invalid(_child(current, "cluster"), cluster, "this value cannot be found in 'clusters'"))
    return errs


def observe_webhook_token_authenticator(listers, recorder, existing_config):
    """Configure the webhook token authenticator from the authentication config.

    When a kubeconfig secret is referenced it is validated and synced into the
    target namespace; otherwise the synced copy is removed. Returns the
    observed config and the list of errors met on the way.
    """
    errs = []
    try:
        existing_webhook = nested_slice(existing_config, *WEBHOOK_TOKEN_AUTHENTICATOR_PATH) or []
    except NestedFieldError as err:
        errs.append(err)
        existing_webhook = []
    existing_configured = bool(existing_webhook)

    observed = {}
    try:
        auth = listers.auth_config_lister.get("cluster")
    except NotFoundError:
        return observed, []
    except Exception as err:
        return existing_config, errs + [err]

    secret_name = auth.webhook_token_authenticator or ""
    observed_configured = bool(secret_name)
    destination = ResourceLocation(namespace=TARGET_NAMESPACE, name="webhook-authenticator")

    if observed_configured:
        try:
            kubeconfig_secret = listers.config_secret_lister.get(secret_name)
        except Exception as err:
            failure = ValueError(f"failed to get secret {GLOBAL_USER_SPECIFIED_CONFIG_NAMESPACE}/{secret_name}: {err}")
            failure.__cause__ = err
            return existing_config, errs + [failure]

        secret_errors = validate_kubeconfig_secret(kubeconfig_secret)
        if secret_errors:
            return existing_config, errs + [
                ValueError(
                    f"secret {GLOBAL_USER_SPECIFIED_CONFIG_NAMESPACE}/{secret_name} is invalid: "
                    f"{_aggregate(secret_errors)}"
                )
            ]

        set_nested_field(observed, list(WEBHOOK_TOKEN_AUTHENTICATOR_VERSION), *WEBHOOK_TOKEN_AUTHENTICATOR_VERSION_PATH)
        set_nested_field(observed, list(WEBHOOK_TOKEN_AUTHENTICATOR_FILE), *WEBHOOK_TOKEN_AUTHENTICATOR_PATH)
        listers.resource_syncer.sync_secret(
            destination,
            ResourceLocation(namespace=GLOBAL_USER_SPECIFIED_CONFIG_NAMESPACE, name=secret_name),
        )
    else:
        listers.resource_syncer.sync_secret(destination, ResourceLocation())

    if observed_configured != existing_configured:
        recorder.event(
            "ObserveWebhookTokenAuthenticator",
            "authentication-token webhook configuration status changed from "
            f"{str(existing_configured).lower()} to {str(observed_configured).lower()}",
        )

    return observed, errs