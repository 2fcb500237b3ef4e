"""
Host identity and resource usage collection
"""

import ipaddress
import logging
import socket
from typing import Dict, Optional

import psutil

from .exceptions import CollectionError
from .models import HostIdentity, MetricsSample, now_millis

logger = logging.getLogger('hostwatch-agent.collectors')


def get_hostname() -> str:
    try:
        hostname = socket.gethostname()
    except OSError as e:
        raise CollectionError(f"failed to get hostname: {e}") from e
    if not hostname:
        raise CollectionError("failed to get hostname: empty hostname")
    return hostname


def get_local_ip() -> str:
    """Return the first non-loopback IPv4 address of the host"""
    try:
        interfaces = psutil.net_if_addrs()
    except OSError as e:
        raise CollectionError(f"failed to list network interfaces: {e}") from e

    for name, addresses in interfaces.items():
        for address in addresses:
            if address.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.ip_address(address.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                logger.debug(f"Using {ip} from interface {name}")
                return str(ip)

    raise CollectionError("cannot find local IP")


def get_host_identity() -> HostIdentity:
    return HostIdentity(hostname=get_hostname(), ip=get_local_ip())


class MetricCollector:
    """Base class for metric collectors"""

    name = 'metric'

    def collect(self) -> float:
        raise NotImplementedError


class CPUCollector(MetricCollector):
    """CPU utilisation averaged over a short blocking window"""

    name = 'cpu'

    def __init__(self, interval: float = 1.0):
        self.interval = interval

    def collect(self) -> float:
        return float(psutil.cpu_percent(interval=self.interval))


class MemoryCollector(MetricCollector):
    """Used memory percentage"""

    name = 'memory'

    def collect(self) -> float:
        return float(psutil.virtual_memory().percent)


class DiskCollector(MetricCollector):
    """Used space percentage of a single mount point"""

    name = 'disk'

    def __init__(self, path: str = '/'):
        self.path = path

    def collect(self) -> float:
        return float(psutil.disk_usage(self.path).percent)


class MetricsSampler:
    """Combines host identity with CPU, memory and disk readings.

    A failure in any lookup aborts the whole sample; partial samples are
    never produced.
    """

    def __init__(self, collectors: Optional[Dict[str, MetricCollector]] = None):
        if collectors is None:
            collectors = {c.name: c for c in (CPUCollector(), MemoryCollector(), DiskCollector('/'))}
        self.collectors = collectors

    def sample(self) -> MetricsSample:
        logger.debug("Collecting system metrics")

        try:
            identity = get_host_identity()
        except CollectionError:
            raise
        except Exception as e:
            raise CollectionError(f"failed to get host identity: {e}") from e

        readings = {}
        for name, collector in self.collectors.items():
            try:
                readings[name] = collector.collect()
            except Exception as e:
                raise CollectionError(f"failed to get {name} usage: {e}") from e

        return MetricsSample(
            hostname=identity.hostname,
            ip=identity.ip,
            timestamp=now_millis(),
            cpu_usage=readings['cpu'],
            disk_usage=readings['disk'],
            ram_usage=readings['memory'],
        )
