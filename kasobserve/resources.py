"""Cluster configuration resources read by the observers."""

from __future__ import annotations

from dataclasses import dataclass, field

AWS_PLATFORM_TYPE = "AWS"
SINGLE_REPLICA_TOPOLOGY_MODE = "SingleReplica"
HIGHLY_AVAILABLE_TOPOLOGY_MODE = "HighlyAvailable"

AUTHENTICATION_TYPE_INTEGRATED_OAUTH = "IntegratedOAuth"

LATENCY_SENSITIVE = "LatencySensitive"
TECH_PREVIEW_NO_UPGRADE = "TechPreviewNoUpgrade"


@dataclass
class NamedServingCert:
    """A serving certificate for a set of host names, kept in a secret."""

    names: list[str] = field(default_factory=list)
    secret_name: str = ""


@dataclass
class APIServer:
    """The apiserver.config.openshift.io resource."""

    name: str = "cluster"
    additional_cors_allowed_origins: list[str] = field(default_factory=list)
    client_ca: str = ""
    named_certificates: list[NamedServingCert] = field(default_factory=list)


@dataclass
class Authentication:
    """The authentication.config.openshift.io resource."""

    name: str = "cluster"
    type: str = ""
    oauth_metadata: str = ""
    integrated_oauth_metadata: str = ""
    service_account_issuer: str = ""
    webhook_token_authenticator: str | None = None


@dataclass
class Infrastructure:
    """The infrastructure.config.openshift.io resource."""

    name: str = "cluster"
    platform_type: str = ""
    control_plane_topology: str = ""
    api_server_url: str = ""
    api_server_internal_url: str = ""


@dataclass
class RegistryLocation:
    """A registry domain from which images may be imported."""

    domain_name: str
    insecure: bool = False

    def to_dict(self):
        """Return the serialised form, omitting ``insecure`` when false."""
        data = {"domainName": self.domain_name}
        if self.insecure:
            data["insecure"] = True
        return data


@dataclass
class Image:
    """The image.config.openshift.io resource."""

    name: str = "cluster"
    internal_registry_hostname: str = ""
    spec_external_registry_hostnames: list[str] = field(default_factory=list)
    status_external_registry_hostnames: list[str] = field(default_factory=list)
    allowed_registries_for_import: list[RegistryLocation] = field(default_factory=list)


@dataclass
class ExternalIPPolicy:
    """Allowed and rejected CIDRs for service external IPs."""

    allowed_cidrs: list[str] = field(default_factory=list)
    rejected_cidrs: list[str] = field(default_factory=list)


@dataclass
class ExternalIPConfig:
    """External IP settings of the cluster network."""

    policy: ExternalIPPolicy | None = None
    auto_assign_cidrs: list[str] = field(default_factory=list)


@dataclass
class Network:
    """The network.config.openshift.io resource."""

    name: str = "cluster"
    cluster_network: list[str] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    external_ip: ExternalIPConfig | None = None
    service_node_port_range: str = ""


@dataclass
class Scheduler:
    """The scheduler.config.openshift.io resource."""

    name: str = "cluster"
    default_node_selector: str = ""


@dataclass
class FeatureGate:
    """The featuregate.config.openshift.io resource."""

    name: str = "cluster"
    feature_set: str = ""


@dataclass
class Secret:
    """A namespaced secret holding raw data."""

    name: str
    namespace: str = ""
    data: dict[str, bytes] = field(default_factory=dict)