"""
Modelos de datos de vpnkit (agnósticos de interfaz y de sistema).

ResourceSpec describe un recurso deseado; ReconcileOutcome es el resultado
terminal de reconciliarlo. Ninguno se persiste más allá del proceso.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ResourceKind(str, Enum):
    PACKAGE = "package"
    NETWORK_INTERFACE = "network_interface"
    FIREWALL_ZONE = "firewall_zone"
    FORWARDING_RULE = "forwarding_rule"


class AcquisitionMethod(str, Enum):
    """Métodos de adquisición de un paquete, de menos a más agresivo."""
    REPOSITORY_INSTALL = "repository_install"
    DIRECT_DOWNLOAD = "direct_download"
    FORCED_INSTALL = "forced_install"


class FinalState(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


class ConflictResolution(str, Enum):
    OVERWRITE = "overwrite"
    SKIP = "skip"
    RENAME = "rename"


# Kinds que se crean en el config store (no se "instalan")
CONFIG_KINDS = (
    ResourceKind.NETWORK_INTERFACE,
    ResourceKind.FIREWALL_ZONE,
    ResourceKind.FORWARDING_RULE,
)

# Kinds que pasan por resolución de conflictos cuando ya existen
CONFLICT_KINDS = (
    ResourceKind.NETWORK_INTERFACE,
    ResourceKind.FIREWALL_ZONE,
)


class SourceCandidate(BaseModel):
    """
    Un método de adquisición concreto.
    - repository_install: no necesita url (instala por nombre)
    - direct_download / forced_install: url del paquete a descargar
    """
    method: AcquisitionMethod = Field(..., description="Método de adquisición")
    url: Optional[str] = Field(None, description="URL de descarga (solo métodos con descarga)")

    @model_validator(mode="after")
    def _check_url(self) -> "SourceCandidate":
        needs_url = self.method != AcquisitionMethod.REPOSITORY_INSTALL
        if needs_url and not self.url:
            raise ValueError(f"{self.method.value} requiere url")
        return self

    @property
    def filename(self) -> Optional[str]:
        """Nombre de archivo local derivado de la URL."""
        if not self.url:
            return None
        return self.url.rstrip("/").rsplit("/", 1)[-1]


class ResourceSpec(BaseModel):
    """Recurso deseado. `name` es la clave única dentro de su kind."""
    kind: ResourceKind
    name: str = Field(..., description="Clave única dentro del kind (ej: kmod-amneziawg, awg0)")
    properties: Dict[str, str] = Field(default_factory=dict)
    source_candidates: List[SourceCandidate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shape(self) -> "ResourceSpec":
        if not self.name or not self.name.strip():
            raise ValueError("name no puede estar vacío")
        if self.kind == ResourceKind.PACKAGE and not self.source_candidates:
            raise ValueError(f"El paquete '{self.name}' necesita al menos un source candidate")
        if self.kind in CONFIG_KINDS and self.source_candidates:
            raise ValueError(f"{self.kind.value} no admite source candidates (se crea directamente)")
        return self

    @property
    def key(self) -> tuple:
        return (self.kind, self.name)


class ReconcileOutcome(BaseModel):
    """Resultado terminal de reconciliar un ResourceSpec. error_detail existe sii Failed."""
    resource_name: str
    kind: ResourceKind
    final_state: FinalState
    method_used: Optional[AcquisitionMethod] = None
    error_detail: Optional[str] = None

    @model_validator(mode="after")
    def _check_detail(self) -> "ReconcileOutcome":
        failed = self.final_state == FinalState.FAILED
        if failed and not self.error_detail:
            raise ValueError("Un outcome Failed necesita error_detail")
        if not failed and self.error_detail is not None:
            raise ValueError("error_detail solo aplica a outcomes Failed")
        return self

    @property
    def ok(self) -> bool:
        return self.final_state != FinalState.FAILED


def package_spec(name: str, candidates: List[SourceCandidate], **properties: str) -> ResourceSpec:
    """Atajo para construir un ResourceSpec de tipo Package."""
    return ResourceSpec(
        kind=ResourceKind.PACKAGE,
        name=name,
        properties=dict(properties),
        source_candidates=candidates,
    )
