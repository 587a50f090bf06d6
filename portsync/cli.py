"""
Command-line interface for portsync.

Keeps qBittorrent's listening port in sync with the port gluetun has
forwarded through the VPN. Every flag can also be set through the
environment variable shown in its help text (or a .env file).

Usage:
    portsync --qbithost qbittorrent --gluetunhost gluetun --interval 60
    portsync --gluetunportfile /tmp/gluetun/forwarded_port
    python -m portsync --qbituser admin --qbitpass adminadmin
"""

import argparse
import signal
import sys

from . import __version__
from .config import Config, Settings
from .errors import BootstrapError, ConfigError, PortSyncError
from .logger import logger, setup_logging
from .runner import PortSyncRunner


DESCRIPTION = "set listening port in qbittorrent based on gluetun connection"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portsync",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --qbithost qbittorrent --gluetunhost gluetun --interval 60
  %(prog)s --gluetunport 0 --gluetunportfile /tmp/gluetun/forwarded_port
  %(prog)s --qbituser admin --qbitpass adminadmin

An interval of 0 checks once and exits.
"""
    )

    parser.add_argument("--qbituser", default=Config.QBIT_USERNAME,
                        help="qbittorrent username [env: QBITUSER]")
    parser.add_argument("--qbitpass", default=Config.QBIT_PASSWORD,
                        help="qbittorrent password [env: QBITPASS]")
    parser.add_argument("--qbithost", default=Config.QBIT_HOST,
                        help="host to reach qbittorrent on. If this is run on the same docker "
                             "network as gluetun, this can be set to the container name "
                             "[env: QBITHOST] (default: %(default)s)")
    parser.add_argument("--qbitport", type=int, default=Config.QBIT_PORT,
                        help="port to reach qbittorrent on [env: QBITPORT] (default: %(default)s)")
    parser.add_argument("--gluetunhost", default=Config.GLUETUN_HOST,
                        help="host to reach gluetun on [env: GLUETUNHOST] (default: %(default)s)")
    parser.add_argument("--gluetunport", type=int, default=Config.GLUETUN_PORT,
                        help="port to reach gluetun on, 0 disables the API "
                             "[env: GLUETUNPORT] (default: %(default)s)")
    parser.add_argument("--gluetunportfile", default=Config.GLUETUN_PORT_FILE,
                        help="path to gluetun port file [env: GLUETUNPORTFILE]")
    parser.add_argument("--interval", type=int, default=Config.UPDATE_INTERVAL,
                        help="update interval in seconds [env: PORTSYNC_INTERVAL] (default: %(default)s)")
    parser.add_argument("--timeout", type=float, default=Config.REQUEST_TIMEOUT,
                        help="qbittorrent request timeout in seconds [env: REQUEST_TIMEOUT] "
                             "(default: %(default)s)")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL,
                        help="log level [env: LOG_LEVEL] (default: %(default)s)")
    parser.add_argument("--log-path", default=Config.LOG_PATH,
                        help="also log to this file [env: LOG_PATH]")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(argv=None, parser=None) -> Settings:
    """Parse arguments into validated Settings; invalid input exits with status 2."""
    parser = parser or build_parser()
    args = parser.parse_args(argv)

    settings = Settings(
        qbit_host=args.qbithost,
        qbit_port=args.qbitport,
        qbit_username=args.qbituser,
        qbit_password=args.qbitpass,
        gluetun_host=args.gluetunhost,
        gluetun_port=args.gluetunport,
        gluetun_port_file=args.gluetunportfile,
        interval=args.interval,
        timeout=args.timeout,
    )
    try:
        settings.validate()
    except ConfigError as e:
        parser.error(str(e))

    setup_logging(args.log_level, args.log_path)
    return settings


def main(argv=None) -> int:
    settings = load_settings(argv)
    runner = PortSyncRunner(settings)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        runner.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    if settings.single_shot:
        logger.info("Checking port once")
    else:
        logger.info(f"Checking port every {settings.interval}s")

    try:
        runner.run()
    except BootstrapError as e:
        logger.error(f"{e}. Exiting...")
        return 1
    except PortSyncError as e:
        logger.error(f"Failed to set port: {e}")
        return 1
    finally:
        runner.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
