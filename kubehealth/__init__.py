"""kubehealth: resumable health diagnostics for Kubernetes namespaces."""

__version__ = "0.1.0"
