"""Kubeconfig context discovery and validation."""

from __future__ import annotations


class ContextNotFoundError(Exception):
    """Raised when a requested kubeconfig context does not exist."""

    def __init__(self, context: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "<none>"
        super().__init__(f'Context "{context}" not found. Available contexts: {listing}')
        self.context = context
        self.available = available


def list_contexts(config_file: str | None = None) -> tuple[list[str], str | None]:
    """Return ``(context names, active context name)`` from the kubeconfig.

    Returns an empty list when no kubeconfig is present (e.g. in-cluster).
    """
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    try:
        contexts, active = k8s_config.list_kube_config_contexts(config_file=config_file)
    except (k8s_config.ConfigException, FileNotFoundError):
        return [], None
    names = [ctx["name"] for ctx in contexts or []]
    return names, (active or {}).get("name")


def resolve_context(name: str | None, config_file: str | None = None) -> str | None:
    """Validate *name* against the kubeconfig.

    An empty name means "use the active context" and resolves to None.

    Raises:
        ContextNotFoundError: if *name* is not a known context.
    """
    if not name:
        return None
    available, _ = list_contexts(config_file)
    if name not in available:
        raise ContextNotFoundError(name, available)
    return name
