"""Observation of the cluster network configuration."""

from __future__ import annotations

import copy
import ipaddress
import logging

from .listers import NotFoundError
from .nested import NestedFieldError, nested_field, nested_map, set_nested_field

log = logging.getLogger(__name__)

RESTRICTED_CIDRS_CONFIG_PATH = (
    "admission",
    "pluginConfig",
    "network.openshift.io/RestrictedEndpointsAdmission",
    "configuration",
)
EXTERNAL_IP_CONFIG_PATH = (
    "admission",
    "pluginConfig",
    "network.openshift.io/ExternalIPRanger",
    "configuration",
)
SERVICES_SUBNET_PATH = ("servicesSubnet",)
BIND_ADDRESS_PATH = ("servingInfo", "bindAddress")
BIND_NETWORK_PATH = ("servingInfo", "bindNetwork")
SERVICE_NODE_PORT_RANGE_PATH = ("apiServerArguments", "service-node-port-range")

_API_VERSION = "network.openshift.io/v1"
_GROUP = "config.openshift.io"


def _get_network(listers):
    """Return the cluster network, or None when it does not exist."""
    try:
        return listers.network_lister.get("cluster")
    except NotFoundError:
        log.warning("Required networks.%s/cluster not found", _GROUP)
        return None


def _cluster_cidrs(listers):
    network = _get_network(listers)
    if network is None:
        return []
    if not network.cluster_network:
        raise ValueError(f"networks.{_GROUP}/cluster: status.clusterNetwork not found")
    return list(network.cluster_network)


def _service_cidrs(listers):
    network = _get_network(listers)
    if network is None:
        return []
    if not network.service_network:
        raise ValueError(f"networks.{_GROUP}/cluster: status.serviceNetwork not found")
    return list(network.service_network)


def _external_ip_policy(listers):
    network = _get_network(listers)
    if network is None or network.external_ip is None:
        return None
    return network.external_ip.policy


def _external_ip_auto_assign_cidrs(listers):
    network = _get_network(listers)
    if network is None or network.external_ip is None:
        return []
    return list(network.external_ip.auto_assign_cidrs)


def _service_node_port_range(listers):
    network = _get_network(listers)
    if network is None:
        return ""
    return network.service_node_port_range


def _is_ipv6_cidr(text):
    try:
        return ipaddress.ip_network(text, strict=False).version == 6
    except ValueError:
        return False


def _extract_previously_observed(existing, *paths):
    """Copy the given paths of ``existing`` into a new map."""
    errs = []
    previous = {}
    for path in paths:
        try:
            value = nested_field(existing, *path)
        except NestedFieldError:
            continue
        if value is None:
            continue
        try:
            set_nested_field(previous, value, *path)
        except NestedFieldError as err:
            errs.append(err)
    return previous, errs


def observe_restricted_cidrs(listers, recorder, existing_config):
    """Configure the RestrictedEndpointsAdmission plugin with cluster and service CIDRs.

    When the CIDRs cannot be read, the previous configuration is kept.
    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    admission = {}
    try:
        prev = nested_map(existing_config, *RESTRICTED_CIDRS_CONFIG_PATH)
    except NestedFieldError as err:
        errs.append(err)
    else:
        if prev is not None:
            admission = prev
    admission["apiVersion"] = _API_VERSION
    admission["kind"] = "RestrictedEndpointsAdmissionConfig"

    cluster_cidrs = []
    service_cidrs = []
    try:
        cluster_cidrs = _cluster_cidrs(listers)
    except Exception as err:
        errs.append(err)
    try:
        service_cidrs = _service_cidrs(listers)
    except Exception as err:
        errs.append(err)

    if errs or not cluster_cidrs or not service_cidrs:
        previous = {}
        set_nested_field(previous, admission, *RESTRICTED_CIDRS_CONFIG_PATH)
        return previous, errs

    admission["restrictedCIDRs"] = cluster_cidrs + service_cidrs
    observed = {}
    set_nested_field(observed, admission, *RESTRICTED_CIDRS_CONFIG_PATH)
    return observed, errs


def observe_services_subnet(listers, recorder, existing_config):
    """Generate servicesSubnet and the serving bind address and network.

    Returns the observed config and the list of errors met on the way.
    """
    previous, errs = _extract_previously_observed(
        existing_config, SERVICES_SUBNET_PATH, BIND_ADDRESS_PATH, BIND_NETWORK_PATH
    )
    try:
        service_cidrs = _service_cidrs(listers)
    except Exception as err:
        return previous, errs + [err]

    out = {}
    set_nested_field(out, ",".join(service_cidrs), *SERVICES_SUBNET_PATH)
    bind_address = "0.0.0.0:6443"
    bind_network = "tcp4"
    if len(service_cidrs) == 1 and _is_ipv6_cidr(service_cidrs[0]):
        bind_address = "[::]:6443"
        bind_network = "tcp6"
    set_nested_field(out, bind_address, *BIND_ADDRESS_PATH)
    set_nested_field(out, bind_network, *BIND_NETWORK_PATH)
    return out, errs


def observe_external_ip_policy(listers, recorder, existing_config):
    """Configure the ExternalIPRanger admission plugin from the external IP policy.

    Without a policy every external IP is denied. On a retrieval error the
    previous configuration is kept. Returns the observed config and the list
    of errors met on the way.
    """
    previous, errs = _extract_previously_observed(existing_config, EXTERNAL_IP_CONFIG_PATH)

    policy = None
    auto_external_ips = []
    try:
        policy = _external_ip_policy(listers)
    except Exception as err:
        errs.append(err)
    try:
        auto_external_ips = _external_ip_auto_assign_cidrs(listers)
    except Exception as err:
        errs.append(err)

    if errs:
        return previous, errs

    admission = {"apiVersion": _API_VERSION, "kind": "ExternalIPRangerAdmissionConfig"}
    conf = []
    if policy is not None:
        conf.extend("!" + cidr for cidr in policy.rejected_cidrs)
        conf.extend(policy.allowed_cidrs)
    if conf:
        admission["externalIPNetworkCIDRs"] = conf
    admission["allowIngressIP"] = bool(auto_external_ips)

    observed = {}
    set_nested_field(observed, copy.deepcopy(admission), *EXTERNAL_IP_CONFIG_PATH)
    return observed, errs


def observe_services_node_port_range(listers, recorder, existing_config):
    """Generate the service-node-port-range argument when the cluster sets one.

    Returns the observed config and the list of errors met on the way.
    """
    previous, errs = _extract_previously_observed(existing_config, SERVICE_NODE_PORT_RANGE_PATH)
    try:
        port_range = _service_node_port_range(listers)
    except Exception as err:
        return previous, errs + [err]

    if not port_range:
        return {}, errs
    out = {}
    set_nested_field(out, [port_range], *SERVICE_NODE_PORT_RANGE_PATH)
    return out, errs