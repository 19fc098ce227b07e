"""
Bootstrap de AmneziaWG en OpenWrt.

1. Repositorio opkg accesible
2. Detección de placa y versión de protocolo AWG (1.0 / 2.0)
3. kmod-amneziawg, amneziawg-tools y el paquete LuCI (repositorio → descarga → forzado)
4. Interfaz, zona de firewall y forwarding LAN → zona (uci)
"""

from pathlib import Path
from typing import Callable, List, Optional, Tuple

from vpnkit.core.contracts import ConfigStore, Fetcher, Prompter
from vpnkit.core.errors import EnvironmentalError, RunAborted
from vpnkit.core.models import (
    AcquisitionMethod,
    FinalState,
    ReconcileOutcome,
    ResourceKind,
    ResourceSpec,
    SourceCandidate,
    package_spec,
)
from vpnkit.core.naming import (
    awg_protocol_version,
    luci_package_name,
    package_filename,
    release_url,
)
from vpnkit.core.orchestrator import Orchestrator, RunReport
from vpnkit.core.reconciler import Reconciler
from vpnkit.core.settings import Settings
from vpnkit.openwrt.board import BoardInfo, detect_board
from vpnkit.output import log_info, log_ok, log_warn, notify as default_notify, print_report, console
from vpnkit.providers.fetch import RequestsFetcher
from vpnkit.providers.opkg import OpkgPackageManager
from vpnkit.providers.prompts import conflict_resolver
from vpnkit.providers.shell import run_command
from vpnkit.providers.uci import UciConfigStore

AWG_PACKAGES = ("kmod-amneziawg", "amneziawg-tools")
NTP_HINT = "Revisa la conexión o la fecha del router. Sincronización forzada: ntpd -p ptbtime1.ptb.de"

ZONE_DEFAULTS = {
    "input": "REJECT",
    "output": "ACCEPT",
    "forward": "REJECT",
    "masq": "1",
    "mtu_fix": "1",
}


# --- Specs (lógica pura) ---

def awg_package_names(board: BoardInfo) -> List[str]:
    return list(AWG_PACKAGES) + [luci_package_name(board.version)]


def awg_candidates(package: str, board: BoardInfo, base_url: str) -> List[SourceCandidate]:
    """Repositorio → descarga del release → instalación forzada del mismo archivo."""
    filename = package_filename(package, board.arch, board.target, board.subtarget, board.version)
    url = release_url(base_url, board.version, filename)
    return [
        SourceCandidate(method=AcquisitionMethod.REPOSITORY_INSTALL),
        SourceCandidate(method=AcquisitionMethod.DIRECT_DOWNLOAD, url=url),
        SourceCandidate(method=AcquisitionMethod.FORCED_INSTALL, url=url),
    ]


def awg_package_specs(board: BoardInfo, base_url: str) -> List[ResourceSpec]:
    return [package_spec(name, awg_candidates(name, board, base_url)) for name in awg_package_names(board)]


def interface_spec(name: str) -> ResourceSpec:
    return ResourceSpec(kind=ResourceKind.NETWORK_INTERFACE, name=name, properties={"proto": "amneziawg"})


def zone_spec(zone: str, interface: str) -> ResourceSpec:
    properties = {"network": interface}
    properties.update(ZONE_DEFAULTS)
    return ResourceSpec(kind=ResourceKind.FIREWALL_ZONE, name=zone, properties=properties)


def forwarding_spec(zone: str, src: str = "lan") -> ResourceSpec:
    return ResourceSpec(
        kind=ResourceKind.FORWARDING_RULE,
        name=f"{src}_{zone}",
        properties={"src": src, "dest": zone},
    )


# --- Pasos ---

def check_repo(opkg: OpkgPackageManager) -> None:
    """`opkg update`; si algún feed no se descarga es un problema de entorno (red/fecha)."""
    log_info("Comprobando disponibilidad del repositorio OpenWrt...")
    ok, output = opkg.update()
    if not ok:
        raise EnvironmentalError(f"opkg update falló. {NTP_HINT}")


class ArchCheckingOpkg:
    """
    PackageManager que, antes del primer .ipk local, verifica que opkg acepte
    la arquitectura `<arch>_<target>_<subtarget>` de los releases y ofrece añadirla.
    """

    def __init__(self, opkg: OpkgPackageManager, board: BoardInfo, prompter: Prompter, priority: int = 200):
        self.opkg = opkg
        self.board = board
        self.prompter = prompter
        self.priority = priority
        self._checked = False

    def is_installed(self, name: str) -> bool:
        return self.opkg.is_installed(name)

    def install(self, name: str) -> Tuple[bool, str]:
        return self.opkg.install(name)

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        if not self._checked:
            self.ensure_architecture()
            self._checked = True
        return self.opkg.install_from_file(path, force_dependencies=force_dependencies)

    def ensure_architecture(self) -> None:
        expected = self.board.full_arch
        known = [name for name, _ in self.opkg.architectures()]
        if expected in known:
            return
        log_warn(f"opkg no reconoce la arquitectura del paquete: {expected}")
        if not self.prompter.confirm(f"¿Añadir '{expected}' a la configuración de opkg?", default=False):
            raise RunAborted("No se puede continuar sin una arquitectura compatible")
        conf = self.opkg.add_architecture(expected, self.priority)
        log_info(f"Añadido 'arch {expected} {self.priority}' a {conf}")


def configure_interface(
    orchestrator: Orchestrator,
    prompter: Prompter,
    default_name: str = "awg0",
) -> Optional[str]:
    """
    Crea interfaz, zona y forwarding. El nombre efectivo (tras un posible Rename)
    se pasa explícitamente a los pasos siguientes.

    Returns:
        Nombre de la interfaz creada, o None si se omitió
    """
    log_info("Configuración de la interfaz...")
    name = prompter.ask("Nombre de la interfaz", default=default_name)

    if not prompter.confirm(f"¿Crear la interfaz AmneziaWG '{name}'?", default=True):
        log_info("Creación de la interfaz omitida")
        return None

    outcome = orchestrator.apply(interface_spec(name))
    if outcome.final_state == FinalState.SKIPPED:
        return None
    interface = outcome.resource_name

    zone = f"{interface}_zone"
    if prompter.confirm(f"¿Crear la zona de firewall '{zone}' para '{interface}'?", default=True):
        zone_outcome = orchestrator.apply(zone_spec(zone, interface))
        zone = _effective_name(zone_outcome, zone)

    if prompter.confirm(f"¿Configurar forwarding LAN → {zone}?", default=True):
        orchestrator.apply(forwarding_spec(zone))

    orchestrator.commit()
    log_ok("Configuración guardada (uci commit)")
    return interface


def _effective_name(outcome: ReconcileOutcome, fallback: str) -> str:
    if outcome.final_state == FinalState.INSTALLED:
        return outcome.resource_name
    return fallback


def print_next_steps(interface: Optional[str]) -> None:
    console.print("\n[bold green]¡Instalación completa![/bold green]")
    console.print("Siguientes pasos:")
    console.print("  1. LuCI → Network → Interfaces")
    console.print(f"  2. Edita '{interface or 'awg0'}' (o la interfaz que hayas creado)")
    console.print("  3. 'Load configuration' y sube tu archivo .conf de AmneziaWG")
    console.print("  4. Reinicia la red para aplicar los cambios\n")


def bootstrap_amneziawg(
    settings: Settings,
    prompter: Prompter,
    opkg: Optional[OpkgPackageManager] = None,
    store: Optional[ConfigStore] = None,
    fetcher: Optional[Fetcher] = None,
    board_json: Optional[str] = None,
    notify: Optional[Callable[[str, str], None]] = None,
) -> RunReport:
    """Flujo completo; los colaboradores son inyectables para pruebas."""
    if opkg is None:
        if not OpkgPackageManager.available():
            raise EnvironmentalError("opkg no encontrado. ¿Es OpenWrt?")
        opkg = OpkgPackageManager()

    check_repo(opkg)

    board = detect_board(opkg.architectures(), board_json)
    log_info(f"Placa: {board.target}/{board.subtarget}, OpenWrt {board.version}, arch {board.arch}")
    log_info(f"Versión AWG detectada: {awg_protocol_version(board.version)}")

    reconciler = Reconciler(
        packages=ArchCheckingOpkg(opkg, board, prompter, settings.opkg_arch_priority),
        store=store if store is not None else UciConfigStore(),
        fetcher=fetcher if fetcher is not None else RequestsFetcher(timeout=settings.http_timeout),
        prompter=prompter,
        on_conflict=conflict_resolver(prompter, on_invalid=log_warn),
        scratch_dir=settings.scratch_dir,
        notify=notify or default_notify,
    )
    orchestrator = Orchestrator(reconciler, on_failure=settings.on_failure)

    try:
        orchestrator.run(awg_package_specs(board, settings.awg_release_base_url))
        if orchestrator.report.ok:
            log_ok("Paquetes AmneziaWG instalados")
        interface = configure_interface(orchestrator, prompter, settings.awg_interface_default)
    finally:
        print_report(orchestrator.report)

    print_next_steps(interface)
    if prompter.confirm("¿Reiniciar la red ahora?", default=False):
        log_info("Reiniciando la red...")
        run_command(["service", "network", "restart"])

    return orchestrator.report
