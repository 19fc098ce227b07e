"""
Core: lógica de reconciliación pura.

ENFORCEMENT:
- Este paquete NO debe importar vpnkit.cli ni vpnkit.providers, ni imprimir.
- Permitido: typing, pathlib, pydantic, yaml (settings), vpnkit.core.*.
- Los providers y la CLI importan desde core; nunca al revés.
"""

from vpnkit.core.errors import (
    ConfigError,
    ConfigStoreError,
    EnvironmentalError,
    ResourceFailed,
    RunAborted,
    SystemicError,
    VpnkitError,
)
from vpnkit.core.models import (
    AcquisitionMethod,
    ConflictResolution,
    FinalState,
    ReconcileOutcome,
    ResourceKind,
    ResourceSpec,
    SourceCandidate,
)
from vpnkit.core.orchestrator import FailurePolicy, Orchestrator, RunReport
from vpnkit.core.reconciler import Reconciler

__all__ = [
    "AcquisitionMethod",
    "ConfigError",
    "ConfigStoreError",
    "ConflictResolution",
    "EnvironmentalError",
    "FailurePolicy",
    "FinalState",
    "Orchestrator",
    "ReconcileOutcome",
    "Reconciler",
    "ResourceFailed",
    "ResourceKind",
    "ResourceSpec",
    "RunAborted",
    "RunReport",
    "SourceCandidate",
    "SystemicError",
    "VpnkitError",
]
