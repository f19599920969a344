"""kubehealth command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kubehealth`` script).
"""

from kubehealth.cli.main import cli

__all__ = ["cli"]
