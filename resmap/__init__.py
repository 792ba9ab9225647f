"""resmap -- resource dependency graph engine for the infrastructure inventory."""

__version__ = "0.3.1"
