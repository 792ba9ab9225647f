"""resmap command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``resmap`` script).
"""

from resmap.cli.main import cli

__all__ = ["cli"]
