"""
Errores de vpnkit.

El core solo define excepciones; las capas (CLI) se encargan del formato de salida.
Los fallos transitorios (descarga, instalación de un candidato) NO son excepciones:
se absorben dentro del reconciliador y terminan como ReconcileOutcome.
"""


class VpnkitError(Exception):
    """Error base de vpnkit."""

    category = "error"
    exit_code = 1


class EnvironmentalError(VpnkitError):
    """Falta una herramienta requerida o el sistema no está soportado (antes de mutar nada)."""

    category = "entorno"


class SystemicError(VpnkitError):
    """Fallo sistémico: aborta toda la ejecución (sin gestor de paquetes, store no escribible)."""

    category = "sistema"


class ConfigStoreError(SystemicError):
    """El config store (uci) rechazó una escritura o un commit."""

    category = "config-store"


class ConfigError(VpnkitError):
    """Error de configuración de vpnkit (YAML inválido, valores fuera de rango)."""

    category = "configuración"


class RunAborted(VpnkitError):
    """
    El usuario rechazó una confirmación; se aborta el resto del pipeline.
    `outcome` es el resultado Failed del recurso en curso, si lo había.
    """

    category = "abortado"

    def __init__(self, message: str = "", outcome=None):
        self.outcome = outcome
        super().__init__(message)


class Cancelled(RunAborted):
    """El usuario decidió no continuar en un paso opcional (ej: aviso WSL2); sale con 0."""

    category = "cancelado"
    exit_code = 0


class ResourceFailed(VpnkitError):
    """Un recurso terminó en Failed y la política es abortar."""

    category = "recurso"

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(f"{outcome.resource_name}: {outcome.error_detail}")


class DuplicateResourceError(VpnkitError):
    """Un ResourceSpec se intentó reconciliar dos veces en la misma ejecución."""

    category = "duplicado"
