import os
from dataclasses import dataclass

import dotenv

from .errors import ConfigError


dotenv.load_dotenv()


# Defaults
LOG_LEVEL = "INFO"
LOG_PATH = ""
LOG_ROTATION = "1 week"
LOG_RETENTION = "1 month"

# qBittorrent Web UI
QBIT_HOST = "localhost"
QBIT_PORT = 8080
QBIT_USERNAME = ""
QBIT_PASSWORD = ""

# Gluetun control server
GLUETUN_HOST = "localhost"
GLUETUN_PORT = 8000
GLUETUN_PORT_FILE = ""

# Seconds between checks, 0 runs a single check and exits
UPDATE_INTERVAL = 0
REQUEST_TIMEOUT = 1.0

# Login retries before the first check
LOGIN_ATTEMPTS = 20
LOGIN_DELAY = 10


class Config:
    LOG_LEVEL = os.getenv("LOG_LEVEL", LOG_LEVEL)
    LOG_PATH = os.getenv("LOG_PATH", LOG_PATH)
    LOG_ROTATION = os.getenv("LOG_ROTATION", LOG_ROTATION)
    LOG_RETENTION = os.getenv("LOG_RETENTION", LOG_RETENTION)

    # qBittorrent Configuration
    QBIT_HOST = os.getenv("QBITHOST", QBIT_HOST)
    QBIT_PORT = int(os.getenv("QBITPORT", QBIT_PORT))
    QBIT_USERNAME = os.getenv("QBITUSER", QBIT_USERNAME)
    QBIT_PASSWORD = os.getenv("QBITPASS", QBIT_PASSWORD)

    # Gluetun Configuration
    GLUETUN_HOST = os.getenv("GLUETUNHOST", GLUETUN_HOST)
    GLUETUN_PORT = int(os.getenv("GLUETUNPORT", GLUETUN_PORT))
    GLUETUN_PORT_FILE = os.getenv("GLUETUNPORTFILE", GLUETUN_PORT_FILE)

    UPDATE_INTERVAL = int(os.getenv("PORTSYNC_INTERVAL", UPDATE_INTERVAL))
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", REQUEST_TIMEOUT))

    LOGIN_ATTEMPTS = int(os.getenv("LOGIN_ATTEMPTS", LOGIN_ATTEMPTS))
    LOGIN_DELAY = float(os.getenv("LOGIN_DELAY", LOGIN_DELAY))


@dataclass(frozen=True)
class Settings:
    """Connection settings for a single run."""
    qbit_host: str = Config.QBIT_HOST
    qbit_port: int = Config.QBIT_PORT
    qbit_username: str = Config.QBIT_USERNAME
    qbit_password: str = Config.QBIT_PASSWORD
    gluetun_host: str = Config.GLUETUN_HOST
    gluetun_port: int = Config.GLUETUN_PORT
    gluetun_port_file: str = Config.GLUETUN_PORT_FILE
    interval: int = Config.UPDATE_INTERVAL
    timeout: float = Config.REQUEST_TIMEOUT
    login_attempts: int = Config.LOGIN_ATTEMPTS
    login_delay: float = Config.LOGIN_DELAY

    @property
    def qbit_url(self) -> str:
        return f"http://{self.qbit_host}:{self.qbit_port}"

    @property
    def gluetun_url(self) -> str:
        return f"http://{self.gluetun_host}:{self.gluetun_port}"

    @property
    def use_gluetun_api(self) -> bool:
        return bool(self.gluetun_host) and self.gluetun_port != 0

    @property
    def single_shot(self) -> bool:
        return self.interval == 0

    def validate(self) -> "Settings":
        """Check the settings and raise ConfigError listing every problem."""
        errors = []

        if not self.use_gluetun_api and not self.gluetun_port_file:
            errors.append(
                "must specify either --gluetunhost and --gluetunport or --gluetunportfile"
            )
        if not self.qbit_host or not self.qbit_port:
            errors.append("need --qbithost and --qbitport")

        for name in ("qbit_port", "gluetun_port"):
            port = getattr(self, name)
            if port and not 0 < port < 65536:
                errors.append(f"{name} must be between 1 and 65535, got {port}")

        if self.interval < 0:
            errors.append(f"interval must not be negative, got {self.interval}")
        if self.timeout <= 0:
            errors.append(f"timeout must be positive, got {self.timeout}")
        if self.login_attempts < 1:
            errors.append(f"login_attempts must be at least 1, got {self.login_attempts}")
        if self.login_delay < 0:
            errors.append(f"login_delay must not be negative, got {self.login_delay}")

        if errors:
            raise ConfigError("Invalid config: " + "; ".join(errors))
        return self
