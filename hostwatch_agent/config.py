"""
Agent configuration

Settings are assembled once at startup from built-in defaults, an optional
INI file and the process environment (highest precedence), then handed to
each component as an immutable AgentConfig.
"""

import configparser
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger('hostwatch-agent.config')

DEFAULT_CONFIG_FILE = '/etc/hostwatch/agent.conf'
DEFAULT_SERVER_HOST = 'localhost'
DEFAULT_SERVER_PORT = 8080
DEFAULT_INTERVAL = 60
DEFAULT_SCAN_TIMEOUT = 0.2
DEFAULT_SCAN_WORKERS = 100
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class AgentConfig:
    server_host: str = DEFAULT_SERVER_HOST
    server_port: int = DEFAULT_SERVER_PORT
    interval: int = DEFAULT_INTERVAL
    ports: Optional[str] = None
    scan_timeout: float = DEFAULT_SCAN_TIMEOUT
    scan_workers: int = DEFAULT_SCAN_WORKERS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def server_url(self) -> str:
        return f"http://{self.server_host}:{self.server_port}"

    @property
    def registration_url(self) -> str:
        return f"{self.server_url}/api/agent/register"

    @property
    def metrics_url(self) -> str:
        return f"{self.server_url}/api/metrics"


def load_config_file(config_file: Optional[str]) -> configparser.ConfigParser:
    """Load the INI file on top of the default sections"""
    config = configparser.ConfigParser()

    config['server'] = {
        'host': DEFAULT_SERVER_HOST,
        'port': str(DEFAULT_SERVER_PORT),
        'timeout': str(DEFAULT_HTTP_TIMEOUT),
    }
    config['agent'] = {
        'interval': str(DEFAULT_INTERVAL),
        'ports': '',
    }
    config['scan'] = {
        'timeout': str(DEFAULT_SCAN_TIMEOUT),
        'workers': str(DEFAULT_SCAN_WORKERS),
    }

    if config_file and os.path.exists(config_file):
        config.read(config_file)
        logger.info(f"Loaded configuration from {config_file}")

    return config


def parse_interval(value: Optional[str], default: int = DEFAULT_INTERVAL,
                   source: str = 'SEND_INTERVAL') -> int:
    """Seconds between reporting cycles; anything but a positive integer
    yields the default."""
    if value is None or value.strip() == '':
        return default
    try:
        seconds = int(value)
    except ValueError:
        logger.warning(f"Invalid {source} value {value!r}, using default {default} seconds")
        return default
    if seconds <= 0:
        logger.warning(f"{source} must be positive, got {seconds}; using default {default} seconds")
        return default
    return seconds


def parse_server_port(value: Optional[str], default: int = DEFAULT_SERVER_PORT) -> int:
    if value is None or value.strip() == '':
        return default
    try:
        port = int(value)
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        logger.warning(f"Invalid MONITORING_SERVER_PORT value {value!r}, using default {default}")
        return default
    return port


def _get_float(config: configparser.ConfigParser, section: str, option: str,
               default: float) -> float:
    try:
        value = config.getfloat(section, option, fallback=default)
    except ValueError:
        logger.warning(f"Invalid [{section}] {option} value, using default {default}")
        return default
    return value if value > 0 else default


def _get_int(config: configparser.ConfigParser, section: str, option: str,
             default: int) -> int:
    try:
        value = config.getint(section, option, fallback=default)
    except ValueError:
        logger.warning(f"Invalid [{section}] {option} value, using default {default}")
        return default
    return value if value > 0 else default


def build_config(environ: Mapping[str, str],
                 config_file: Optional[str] = None) -> AgentConfig:
    """Build the agent configuration from an INI file and an environment mapping"""
    config = load_config_file(config_file)

    host = environ.get('MONITORING_SERVER_HOST') or config.get('server', 'host') or DEFAULT_SERVER_HOST

    port_value = environ.get('MONITORING_SERVER_PORT') or config.get('server', 'port')
    server_port = parse_server_port(port_value)

    interval_value = environ.get('SEND_INTERVAL')
    if interval_value is None:
        interval = parse_interval(config.get('agent', 'interval'), source='[agent] interval')
    else:
        interval = parse_interval(interval_value)

    ports = environ.get('PORTS') or config.get('agent', 'ports') or None

    return AgentConfig(
        server_host=host,
        server_port=server_port,
        interval=interval,
        ports=ports,
        scan_timeout=_get_float(config, 'scan', 'timeout', DEFAULT_SCAN_TIMEOUT),
        scan_workers=_get_int(config, 'scan', 'workers', DEFAULT_SCAN_WORKERS),
        http_timeout=_get_float(config, 'server', 'timeout', DEFAULT_HTTP_TIMEOUT),
    )
