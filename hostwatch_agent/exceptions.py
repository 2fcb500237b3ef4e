"""
Error types raised by the HostWatch agent
"""


class AgentError(Exception):
    """Base class for agent errors"""


class PortSpecError(AgentError, ValueError):
    """Raised when a port specification cannot be parsed"""


class CollectionError(AgentError):
    """Raised when a metrics sample cannot be collected"""


class TransportError(AgentError):
    """Raised when an HTTP exchange with the server fails"""


class StartupError(AgentError):
    """Raised when the agent cannot start; fatal for the process"""


class ListenerError(StartupError):
    """Raised when the reachability listener cannot be bound"""


class RegistrationError(StartupError):
    """Raised when the server rejects or never receives the registration"""
