"""
portsync - keep qBittorrent's listening port in sync with gluetun.

Reads the port gluetun has forwarded through the VPN (from its control
server or its port file) and updates qBittorrent's listening port through
the Web API whenever the two differ.
"""

__version__ = "0.1.0"

from .config import Config, Settings
from .gateway import PortSource
from .qbittorrent import Preferences, QbitClient
from .reconcile import set_port
from .runner import PortSyncRunner

__all__ = [
    "Config",
    "Settings",
    "PortSource",
    "Preferences",
    "QbitClient",
    "set_port",
    "PortSyncRunner",
]
