"""Cluster and service clients used by the upgrade tools."""

from rhoai_upgrade.services.error_translator import ErrorTranslator
from rhoai_upgrade.services.openshift_client import OpenShiftClient
from rhoai_upgrade.services.trustyai_client import TrustyAIClient

__all__ = [
    "ErrorTranslator",
    "OpenShiftClient",
    "TrustyAIClient",
]
