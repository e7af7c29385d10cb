import errno
import logging
import socket
from collections import namedtuple

from mclanproxy.connector.base import FatalConnectError, TransientConnectError

logger = logging.getLogger(__name__)

# connect() errors that only abandon the connection being made
TRANSIENT_CONNECT_ERRORS = frozenset([
    errno.ETIMEDOUT,
    errno.ECONNRESET,
    errno.ECONNREFUSED,
    errno.EHOSTDOWN,
    errno.EHOSTUNREACH,
    errno.ENETUNREACH,
])


class Endpoint(namedtuple('Endpoint', ['address', 'port'])):
    """
    Describes a TCP server endpoint. Endpoints are immutable and compare by value.
    """
    __slots__ = ()

    def key(self):
        """
        >>> Endpoint('10.0.0.5', 25565).key()
        '10.0.0.5:25565'
        """
        return str(self.address) + ':' + str(self.port)

    def __str__(self):
        return self.key()


class UpstreamConnector:
    """
    Opens TCP connections to a server endpoint.
    """
    def __init__(self, endpoint: Endpoint, timeout=None, sock_args=(socket.AF_INET, socket.SOCK_STREAM)):
        """
        :param endpoint The server to connect to.
        :param timeout  How long (in seconds) to wait for the connection to be established. None waits
            for the operating system to give up.
        :param sock_args arguments for constructing the socket.
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._sock_args = sock_args

    def connect(self) -> socket.socket:
        """
        Opens a new connection to the endpoint.
        Raises TransientConnectError if the server could not be reached, and FatalConnectError for
        any other failure.
        """
        try:
            sock = socket.socket(*self._sock_args)
        except OSError as e:
            raise FatalConnectError("unable to create socket: %s" % e) from e
        try:
            sock.settimeout(self.timeout)
            sock.connect(tuple(self.endpoint))
            sock.settimeout(None)
        except socket.timeout as e:
            sock.close()
            raise TransientConnectError("timed out connecting to %s" % (self.endpoint,)) from e
        except OSError as e:
            sock.close()
            if e.errno in TRANSIENT_CONNECT_ERRORS:
                raise TransientConnectError("failed to connect to %s: %s" % (self.endpoint, e)) from e
            raise FatalConnectError("error connecting to %s: %s" % (self.endpoint, e)) from e
        logger.debug("opened socket to %s" % (self.endpoint,))
        return sock
