"""Remediation tools for upgrading OpenShift AI from 2.25 to 3.x."""

__version__ = "0.1.0"
