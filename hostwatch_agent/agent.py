#!/usr/bin/env python3
"""
HostWatch Monitoring Agent v1.0.0
Registers the host with a HostWatch server and reports resource usage

On startup the agent:
- Opens a reachability listener on an OS-assigned port
- Resolves the open-port inventory (PORTS specification or local scan)
- Registers hostname, IP, ports and listener port with the server, once

Afterwards it samples CPU, memory and disk usage every SEND_INTERVAL
seconds and posts each sample to the server until terminated.
"""

import os
import sys
import time
import logging
import argparse
from typing import Iterable, List, Optional

import requests
from requests.adapters import HTTPAdapter

from .collectors import MetricsSampler, get_host_identity
from .config import DEFAULT_CONFIG_FILE, AgentConfig, build_config
from .exceptions import (
    CollectionError,
    RegistrationError,
    StartupError,
    TransportError,
)
from .listener import ReachabilityListener
from .models import AgentRegistration, HostIdentity, MetricsSample
from .ports import PortScanner, resolve_open_ports

# Version
__version__ = "1.0.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('hostwatch-agent')


class HostWatchAgent:
    """Main agent class"""

    def __init__(self, config: AgentConfig,
                 sampler: Optional[MetricsSampler] = None,
                 scanner: Optional[PortScanner] = None,
                 listener: Optional[ReachabilityListener] = None):
        self.config = config
        self.interval = config.interval
        self.sampler = sampler or MetricsSampler()
        self.scanner = scanner or PortScanner(
            host='127.0.0.1',
            timeout=config.scan_timeout,
            max_workers=config.scan_workers,
        )
        self.listener = listener or ReachabilityListener()
        self.identity: Optional[HostIdentity] = None
        self.registration: Optional[AgentRegistration] = None

        # Setup HTTP session; deliveries are never retried
        self.session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=1,
            pool_maxsize=1,
            max_retries=0
        )
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

        self.session.headers.update({
            'User-Agent': f'HostWatch-Agent/{__version__}',
        })

    def resolve_ports(self) -> List[int]:
        return resolve_open_ports(self.config.ports, self.scanner)

    def register(self, identity: HostIdentity, open_ports: Iterable[int],
                 agent_port: int) -> AgentRegistration:
        """Register agent with the monitoring server"""
        registration = AgentRegistration.build(identity, open_ports, agent_port)
        url = self.config.registration_url
        logger.info(f"Registering agent {identity.hostname} ({identity.ip}) to: {url}")

        try:
            response = self.session.post(
                url,
                json=registration.to_dict(),
                timeout=self.config.http_timeout
            )
        except requests.exceptions.RequestException as e:
            raise RegistrationError(f"failed to send registration: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RegistrationError(
                f"registration failed with status: {response.status_code} {response.reason}"
            )

        logger.info(f"Agent registration successful: {response.status_code} {response.reason}")
        self.registration = registration
        return registration

    def start(self) -> AgentRegistration:
        """Open the listener, resolve ports and register; any failure is fatal"""
        agent_port = self.listener.start()

        try:
            self.identity = get_host_identity()
        except CollectionError as e:
            raise StartupError(f"failed to determine host identity: {e}") from e

        open_ports = self.resolve_ports()
        return self.register(self.identity, open_ports, agent_port)

    def send_metrics(self, sample: MetricsSample) -> int:
        """Post one sample; returns the HTTP status code"""
        try:
            response = self.session.post(
                self.config.metrics_url,
                json=sample.to_dict(),
                timeout=self.config.http_timeout
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"failed to send metrics: {e}") from e

        if 200 <= response.status_code < 300:
            logger.info(f"Metrics sent: {response.status_code} {response.reason}")
        else:
            logger.warning(f"Metrics sent but server answered: {response.status_code} {response.reason}")
        return response.status_code

    def run_once(self) -> Optional[int]:
        """Run one collection/reporting cycle"""
        try:
            sample = self.sampler.sample()
        except CollectionError as e:
            logger.error(f"Error collecting metrics: {e}")
            return None

        try:
            return self.send_metrics(sample)
        except TransportError as e:
            logger.error(f"Error sending metrics: {e}")
            return None

    def run(self):
        """Main reporting loop; never returns"""
        logger.info(f"Sending metrics to: {self.config.metrics_url}")
        logger.info(f"Reporting interval: {self.interval}s")

        while True:
            start_time = time.monotonic()

            self.run_once()

            # Sleep until next interval
            elapsed = time.monotonic() - start_time
            sleep_time = max(0, self.interval - elapsed)
            if sleep_time > 0:
                logger.debug(f"Sleeping for {sleep_time:.1f}s")
                time.sleep(sleep_time)

    def close(self):
        self.listener.close()
        self.session.close()


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description='HostWatch Monitoring Agent')
    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_FILE,
                        help='Configuration file path')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--test', action='store_true',
                        help='Register, report once and exit')
    parser.add_argument('--list-ports', action='store_true',
                        help='Print the resolved port inventory and exit')

    args = parser.parse_args(argv)

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    config = build_config(os.environ, args.config)

    # List ports if requested
    if args.list_ports:
        scanner = PortScanner(timeout=config.scan_timeout, max_workers=config.scan_workers)
        for port in sorted(resolve_open_ports(config.ports, scanner)):
            print(port)
        sys.exit(0)

    logger.info(f"Starting HostWatch Agent v{__version__}")
    logger.info(f"Monitoring server: {config.server_url}")

    agent = HostWatchAgent(config)

    try:
        agent.start()
    except StartupError as e:
        logger.error(f"Error starting agent: {e}")
        sys.exit(1)

    if args.test:
        # Test mode - run once
        status = agent.run_once()
        agent.close()
        sys.exit(0 if status is not None else 1)

    # Normal mode - run forever
    try:
        agent.run()
    except KeyboardInterrupt:
        logger.info("Shutting down agent")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
