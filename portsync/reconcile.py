from dataclasses import dataclass

from .config import Settings
from .logger import logger


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a single reconciliation."""
    port: int
    previous_port: int
    changed: bool


def set_port(settings: Settings, client, port_source) -> SyncResult:
    """
    Read the forwarded port from gluetun and set it as qBittorrent's listening port.

    Preferences are only written when the port differs. A written port always
    disables random_port. Errors from either side propagate unchanged.

    Args:
        settings: Settings for this run
        client: Object with get_preferences()/set_preferences(), e.g. QbitClient
        port_source: Object with resolve(settings), e.g. PortSource

    Returns:
        SyncResult describing what was done
    """
    port = port_source.resolve(settings)
    logger.debug(f"Got port {port} from gluetun")

    prefs = client.get_preferences()
    previous = prefs.listen_port
    if previous == port:
        logger.info(f"Port already set to {port}")
        return SyncResult(port=port, previous_port=previous, changed=False)

    prefs.listen_port = port
    prefs.random_port = False
    client.set_preferences(prefs)
    logger.info(f"Set listening port from {previous} to {port}")
    return SyncResult(port=port, previous_port=previous, changed=True)
