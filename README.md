# kasobserve

`kasobserve` turns cluster-wide configuration resources (API server, authentication,
infrastructure, image, network and scheduler settings) into the fragments of
kube-apiserver configuration that should be applied for them, and works out whether
the configured feature set allows upgrades.

Each observer takes three arguments:

- a `Listers` object (from `kasobserve.listers`) giving access to the cluster
  resources and to a `ResourceSyncer`,
- an event recorder such as `InMemoryRecorder`,
- the existing configuration as a nested `dict`.

It returns a pair: the observed configuration fragment and a list of errors.
Errors are collected rather than raised, so that a partial failure still yields
the best configuration available (usually the previously observed one).

## Installation

```
pip install kasobserve
```

## Example

```python
from kasobserve.listers import InMemoryRecorder, Listers, ObjectLister
from kasobserve.resources import Scheduler
from kasobserve.scheduler import observe_default_node_selector

listers = Listers(
    scheduler_lister=ObjectLister(
        Scheduler(name="cluster", default_node_selector="type=user-node,region=east")
    ),
)
recorder = InMemoryRecorder("scheduler")

config, errors = observe_default_node_selector(listers, recorder, {})
# config == {"projectConfig": {"defaultNodeSelector": "type=user-node,region=east"}}
# errors == []
# [e.reason for e in recorder.events()] == ["ObserveDefaultNodeSelectorChanged"]
```

## Observers

| Module | Functions |
| --- | --- |
| `kasobserve.cors` | `observe_additional_cors_allowed_origins` |
| `kasobserve.termination` | `observe_shutdown_delay_duration`, `observe_graceful_termination_duration` |
| `kasobserve.scheduler` | `observe_default_node_selector` |
| `kasobserve.auth_metadata` | `observe_auth_metadata` |
| `kasobserve.serviceaccount_issuer` | `observe_service_account_issuer`, `observed_config`, `check_issuer` |
| `kasobserve.webhook_authenticator` | `observe_webhook_token_authenticator`, `validate_kubeconfig_secret` |
| `kasobserve.images` | `observe_internal_registry_hostname`, `observe_external_registry_hostnames`, `observe_allowed_registries_for_import` |
| `kasobserve.network` | `observe_restricted_cidrs`, `observe_services_subnet`, `observe_external_ip_policy`, `observe_services_node_port_range` |

`kasobserve.featureupgrade.new_upgradeable_condition` takes a `FeatureGate` and
returns an `OperatorCondition` of type `FeatureGatesUpgradeable`: `True` for the
default feature set and `LatencySensitive`, `False` for any other.

`check_issuer` raises `ValueError` when an issuer contains a colon but is not a
valid URL. `validate_kubeconfig_secret` takes a `Secret` and returns the list of
problems found in the kubeconfig under its `kubeConfig` key (an empty list when
it is valid).

## Resources, listers and recording

`kasobserve.resources` holds plain dataclasses for the resources the observers
read: `APIServer`, `NamedServingCert`, `Authentication`, `Infrastructure`,
`Image`, `RegistryLocation`, `Network`, `ExternalIPConfig`, `ExternalIPPolicy`,
`Scheduler`, `FeatureGate` and `Secret`.

`kasobserve.listers` provides:

- `ObjectLister`: objects kept by name, with `get` (raising `NotFoundError` for
  unknown names), `add` and `delete`;
- `Listers`: one `ObjectLister` per resource kind plus a `ResourceSyncer`;
- `ResourceSyncer`: records requested copies of config maps and secrets in its
  `synced` dict, as `kind/name.namespace` of the destination mapped to the
  source, or to `DELETE` when the source `ResourceLocation` is empty;
- `InMemoryRecorder`: keeps `Event`s (reason, message, type) in order.

## Helpers

`kasobserve.nested` has helpers for reading and writing nested configuration
dictionaries: `nested_field`, `nested_string`, `nested_string_slice`,
`nested_slice`, `nested_map`, `set_nested_field` and `pruned`. The readers
return `None` for an absent path and raise `NestedFieldError` when a value has
the wrong type.

## What this package does not do

The package only computes configuration fragments, conditions and sync
requests. It does not talk to a cluster: the listers are filled by the caller,
the `ResourceSyncer` only records what should be copied, and nothing is written
back. There is no controller loop, no command-line program and no merging of
the fragments into a complete kube-apiserver configuration.

## Running the tests

```
pip install -e ".[test]"
pytest
```