"""
Orquestación: aplica ResourceSpecs uno a uno y agrega los resultados.

La política ante un outcome Failed es explícita (configuración `on_failure`):
- abort: se lanza ResourceFailed y no se procesa nada más
- continue: se registra y se sigue con el siguiente recurso
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from vpnkit.core.errors import ResourceFailed, RunAborted
from vpnkit.core.models import FinalState, ReconcileOutcome, ResourceSpec
from vpnkit.core.reconciler import Reconciler


class FailurePolicy(str, Enum):
    ABORT = "abort"
    CONTINUE = "continue"


class RunReport:
    """Outcomes de una ejecución, en el orden en que se produjeron."""

    def __init__(self):
        self.outcomes: List[ReconcileOutcome] = []

    def record(self, outcome: ReconcileOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def failed(self) -> List[ReconcileOutcome]:
        return [o for o in self.outcomes if o.final_state == FinalState.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def counts(self) -> Dict[FinalState, int]:
        totals = {state: 0 for state in FinalState}
        for o in self.outcomes:
            totals[o.final_state] += 1
        return totals


class Orchestrator:
    """Bucle de orquestación sobre un Reconciler."""

    def __init__(
        self,
        reconciler: Reconciler,
        on_failure: FailurePolicy = FailurePolicy.ABORT,
        report: Optional[RunReport] = None,
    ):
        self.reconciler = reconciler
        self.on_failure = FailurePolicy(on_failure)
        # Varios orquestadores (uno por gestor de paquetes) pueden compartir el mismo reporte
        self.report = report if report is not None else RunReport()

    def apply(self, spec: ResourceSpec) -> ReconcileOutcome:
        try:
            outcome = self.reconciler.reconcile(spec)
        except RunAborted as e:
            # El recurso interrumpido también aparece en el resumen
            if e.outcome is not None:
                self.report.record(e.outcome)
            raise
        self.report.record(outcome)
        if outcome.final_state == FinalState.FAILED and self.on_failure == FailurePolicy.ABORT:
            raise ResourceFailed(outcome)
        return outcome

    def run(self, specs: Iterable[ResourceSpec]) -> RunReport:
        for spec in specs:
            self.apply(spec)
        return self.report

    def commit(self) -> None:
        self.reconciler.commit()
