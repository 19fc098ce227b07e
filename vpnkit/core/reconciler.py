"""
Reconciliador de recursos: lleva un ResourceSpec al estado deseado.

Flujo por recurso:
1. Existencia (lista de paquetes o config store). Paquete presente → AlreadyPresent.
2. Conflicto (interfaces y zonas presentes): Overwrite | Skip | Rename.
3. Adquisición (paquetes): candidatos en orden, el primero que funciona corta.
4. Creación (kinds de configuración): escribe las propiedades en el store.

Los directorios temporales de descarga se eliminan siempre al salir de reconcile().
No imprime nada: informa progreso vía `notify(level, message)` si se proporciona.
"""

import tempfile
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from vpnkit.core.contracts import ConfigStore, Fetcher, PackageManager, Prompter
from vpnkit.core.errors import DuplicateResourceError, RunAborted
from vpnkit.core.models import (
    CONFLICT_KINDS,
    AcquisitionMethod,
    ConflictResolution,
    FinalState,
    ReconcileOutcome,
    ResourceKind,
    ResourceSpec,
    SourceCandidate,
)
from vpnkit.core.naming import next_free_name

Notify = Callable[[str, str], None]
ConflictCallback = Callable[[ResourceSpec, str], ConflictResolution]

# kind → (paquete uci, tipo de sección)
SECTIONS: Dict[ResourceKind, Tuple[str, str]] = {
    ResourceKind.NETWORK_INTERFACE: ("network", "interface"),
    ResourceKind.FIREWALL_ZONE: ("firewall", "zone"),
    ResourceKind.FORWARDING_RULE: ("firewall", "forwarding"),
}

# Secciones de peers de AmneziaWG: tipo "amneziawg_<interfaz>"
PEER_SECTION_PREFIX = "amneziawg_"


def _silent(level: str, message: str) -> None:
    pass


class Reconciler:
    """Reconcilia ResourceSpecs de uno en uno; cada spec se procesa como mucho una vez."""

    def __init__(
        self,
        packages: Optional[PackageManager] = None,
        store: Optional[ConfigStore] = None,
        fetcher: Optional[Fetcher] = None,
        prompter: Optional[Prompter] = None,
        on_conflict: Optional[ConflictCallback] = None,
        scratch_dir: Optional[Path] = None,
        notify: Optional[Notify] = None,
    ):
        self.packages = packages
        self.store = store
        self.fetcher = fetcher
        self.prompter = prompter
        self.on_conflict = on_conflict
        self.scratch_dir = scratch_dir
        self.notify = notify or _silent
        self._processed: Set[tuple] = set()
        self._claimed: Dict[ResourceKind, Set[str]] = {}
        self._dirty = False

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------

    def reconcile(self, spec: ResourceSpec) -> ReconcileOutcome:
        if spec.key in self._processed:
            raise DuplicateResourceError(f"{spec.kind.value} '{spec.name}' ya se reconcilió en esta ejecución")
        self._processed.add(spec.key)

        if spec.kind == ResourceKind.PACKAGE:
            return self._reconcile_package(spec)
        return self._reconcile_config(spec)

    def commit(self) -> None:
        """Vuelca de forma durable las mutaciones pendientes del config store."""
        if self.store is not None and self._dirty:
            self.store.commit()
            self._dirty = False

    # ------------------------------------------------------------------
    # Paquetes
    # ------------------------------------------------------------------

    def _reconcile_package(self, spec: ResourceSpec) -> ReconcileOutcome:
        if self.packages is None:
            raise ValueError("Reconciler sin PackageManager no puede reconciliar paquetes")

        if self.packages.is_installed(spec.name):
            self.notify("info", f"{spec.name} ya está instalado")
            return self._outcome(spec, FinalState.ALREADY_PRESENT)

        last_error = ""
        with ExitStack() as stack:
            # url → archivo descargado, o None si la descarga ya falló
            downloads: Dict[str, Optional[Path]] = {}
            scratch: List[Path] = []

            def scratch_path() -> Path:
                if not scratch:
                    tmp = stack.enter_context(
                        tempfile.TemporaryDirectory(prefix="vpnkit-", dir=self.scratch_dir)
                    )
                    scratch.append(Path(tmp))
                return scratch[0]

            for candidate in spec.source_candidates:
                try:
                    ok, detail = self._attempt(spec, candidate, scratch_path, downloads)
                except RunAborted as e:
                    if e.outcome is None:
                        e.outcome = self._outcome(spec, FinalState.FAILED, error=str(e))
                    raise
                if ok:
                    self.notify("ok", f"{spec.name} instalado ({candidate.method.value})")
                    return self._outcome(spec, FinalState.INSTALLED, method=candidate.method)
                last_error = detail
                self.notify("warn", f"{spec.name}: {candidate.method.value} falló: {detail}")

        self.notify("error", f"No se pudo instalar {spec.name}")
        return self._outcome(spec, FinalState.FAILED, error=last_error)

    def _attempt(
        self,
        spec: ResourceSpec,
        candidate: SourceCandidate,
        scratch_path: Callable[[], Path],
        downloads: Dict[str, Optional[Path]],
    ) -> Tuple[bool, str]:
        """Ejecuta un candidato. Devuelve (success, detalle del error)."""
        method = candidate.method

        if method == AcquisitionMethod.REPOSITORY_INSTALL:
            self.notify("info", f"Instalando {spec.name} desde el repositorio...")
            ok, diagnostic = self.packages.install(spec.name)
            return ok, diagnostic or f"install failed: {spec.name}"

        if candidate.url in downloads and downloads[candidate.url] is None:
            return False, f"download failed: {candidate.url}"

        if method == AcquisitionMethod.FORCED_INSTALL:
            question = (
                f"Se intentará instalar {spec.name} forzando dependencias (--force-depends). ¿Continuar?"
            )
            if self.prompter is None or not self.prompter.confirm(question, default=False):
                raise RunAborted(f"Instalación forzada de {spec.name} rechazada")

        path = self._download(candidate, scratch_path, downloads)
        if path is None:
            return False, f"download failed: {candidate.url}"

        force = method == AcquisitionMethod.FORCED_INSTALL
        self.notify("info", f"Instalando {path.name}{' (forzado)' if force else ''}...")
        ok, diagnostic = self.packages.install_from_file(path, force_dependencies=force)
        return ok, diagnostic or f"install failed: {path.name}"

    def _download(
        self,
        candidate: SourceCandidate,
        scratch_path: Callable[[], Path],
        downloads: Dict[str, Optional[Path]],
    ) -> Optional[Path]:
        # Una URL ya intentada en este reconcile no se vuelve a descargar (direct → forced)
        if candidate.url in downloads:
            return downloads[candidate.url]
        if self.fetcher is None:
            return None
        destination = scratch_path() / candidate.filename
        self.notify("info", f"Descargando {candidate.url}")
        if not self.fetcher.download(candidate.url, destination):
            downloads[candidate.url] = None
            return None
        downloads[candidate.url] = destination
        return destination

    # ------------------------------------------------------------------
    # Recursos de configuración
    # ------------------------------------------------------------------

    def _reconcile_config(self, spec: ResourceSpec) -> ReconcileOutcome:
        if self.store is None:
            raise ValueError("Reconciler sin ConfigStore no puede reconciliar configuración")

        name = spec.name
        existing = self.locate(spec.kind, name)

        if existing is not None:
            if spec.kind not in CONFLICT_KINDS:
                self.notify("info", f"Forwarding '{name}' ya existe")
                return self._outcome(spec, FinalState.ALREADY_PRESENT)

            resolution = self._resolve(spec, existing)
            if resolution == ConflictResolution.SKIP:
                self.notify("info", f"Se omite '{name}'")
                self._claim(spec.kind, name)
                return self._outcome(spec, FinalState.SKIPPED)
            if resolution == ConflictResolution.OVERWRITE:
                self.notify("warn", f"Sobrescribiendo '{name}'...")
                self._delete_existing(spec.kind, name, existing)
            else:
                taken = self.existing_names(spec.kind) | self._claimed.get(spec.kind, set())
                name = next_free_name(name, taken)
                self.notify("info", f"Nuevo nombre: {name}")

        self._create(spec.kind, name, spec.properties)
        self._claim(spec.kind, name)
        self.notify("ok", f"{spec.kind.value} '{name}' creado")
        return self._outcome(spec, FinalState.INSTALLED, name=name)

    def _resolve(self, spec: ResourceSpec, existing: str) -> ConflictResolution:
        if self.on_conflict is None:
            return ConflictResolution.SKIP
        return ConflictResolution(self.on_conflict(spec, existing))

    def locate(self, kind: ResourceKind, name: str) -> Optional[str]:
        """Clave de la sección existente con ese nombre, o None."""
        package, section_type = SECTIONS[kind]
        direct = f"{package}.{name}"
        current = self.store.get(direct)
        if current is not None and (kind == ResourceKind.NETWORK_INTERFACE or current == section_type):
            return direct
        if kind == ResourceKind.NETWORK_INTERFACE:
            return None
        # Zonas y forwardings suelen ser secciones anónimas identificadas por la opción name
        for key in self.store.list_keys_matching(f"{package}.*.name"):
            section = key.rsplit(".", 1)[0]
            if self.store.get(key) == name and self.store.get(section) == section_type:
                return section
        return None

    def existing_names(self, kind: ResourceKind) -> Set[str]:
        """Nombres ya usados en el store para ese kind."""
        package, section_type = SECTIONS[kind]
        names: Set[str] = set()
        for section in self._sections(package):
            section_name = section.split(".", 1)[1]
            if kind == ResourceKind.NETWORK_INTERFACE:
                names.add(section_name)
                continue
            if self.store.get(section) != section_type:
                continue
            names.add(section_name)
            option = self.store.get(f"{section}.name")
            if option:
                names.add(option)
        return names

    def _sections(self, package: str) -> List[str]:
        return [k for k in self.store.list_keys_matching(f"{package}.*") if k.count(".") == 1]

    def _delete_existing(self, kind: ResourceKind, name: str, section: str) -> None:
        if kind == ResourceKind.NETWORK_INTERFACE:
            peer_type = f"{PEER_SECTION_PREFIX}{name}"
            for peer in self._sections("network"):
                if self.store.get(peer) == peer_type:
                    self.store.delete(peer)
        self.store.delete(section)
        self._dirty = True

    def _create(self, kind: ResourceKind, name: str, properties: Dict[str, str]) -> None:
        package, section_type = SECTIONS[kind]
        section = f"{package}.{name}"
        self._dirty = True
        self.store.set(section, section_type)
        if kind != ResourceKind.NETWORK_INTERFACE:
            self.store.set(f"{section}.name", name)
        for option, value in properties.items():
            self.store.set(f"{section}.{option}", value)

    def _claim(self, kind: ResourceKind, name: str) -> None:
        self._claimed.setdefault(kind, set()).add(name)

    # ------------------------------------------------------------------

    @staticmethod
    def _outcome(
        spec: ResourceSpec,
        state: FinalState,
        method: Optional[AcquisitionMethod] = None,
        error: Optional[str] = None,
        name: Optional[str] = None,
    ) -> ReconcileOutcome:
        return ReconcileOutcome(
            resource_name=name or spec.name,
            kind=spec.kind,
            final_state=state,
            method_used=method,
            error_detail=error,
        )
