"""
Records exchanged with the monitoring server
"""

import time
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple


def now_millis() -> int:
    """Current wall-clock time as integer epoch milliseconds"""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class HostIdentity:
    hostname: str
    ip: str


@dataclass(frozen=True)
class AgentRegistration:
    """One-shot announcement sent to /api/agent/register"""

    hostname: str
    ip: str
    open_ports: Tuple[int, ...]
    timestamp: int
    agent_port: int

    @classmethod
    def build(cls, identity: HostIdentity, open_ports: Iterable[int],
              agent_port: int) -> 'AgentRegistration':
        return cls(
            hostname=identity.hostname,
            ip=identity.ip,
            open_ports=tuple(sorted(set(open_ports))),
            timestamp=now_millis(),
            agent_port=agent_port,
        )

    def to_dict(self) -> Dict:
        return {
            'hostname': self.hostname,
            'ip': self.ip,
            'openPorts': list(self.open_ports),
            'timestamp': self.timestamp,
            'agentPort': self.agent_port,
        }


@dataclass(frozen=True)
class MetricsSample:
    """A single CPU/RAM/disk reading, sent to /api/metrics"""

    hostname: str
    ip: str
    timestamp: int
    cpu_usage: float
    disk_usage: float
    ram_usage: float

    def to_dict(self) -> Dict:
        return {
            'hostname': self.hostname,
            'ip': self.ip,
            'timestamp': self.timestamp,
            'cpuUsage': self.cpu_usage,
            'diskUsage': self.disk_usage,
            'ramUsage': self.ram_usage,
        }
