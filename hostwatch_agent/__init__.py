"""
HostWatch Agent - Host registration and resource usage agent for HostWatch
"""

__version__ = "1.0.0"
__author__ = "HostWatch"

from .agent import HostWatchAgent

__all__ = ["HostWatchAgent"]
