"""Config observers that derive kube-apiserver configuration from cluster resources."""

__version__ = "0.1.0"

__all__ = [
    "auth_metadata",
    "cors",
    "featureupgrade",
    "images",
    "listers",
    "nested",
    "network",
    "resources",
    "scheduler",
    "serviceaccount_issuer",
    "termination",
    "webhook_authenticator",
]