import logging
import socket

from mclanproxy.errors import ProxyError
from mclanproxy.support.liveness import LivenessTimeout

logger = logging.getLogger(__name__)

# default public port for remote connections
PUBLIC_PORT = 4446

# maximum number of pending connections on the public socket
BACKLOG = 5

# seconds without an announcement before the server is considered gone
LIVENESS_TIMEOUT = 5

# seconds between liveness checks while a server is known
POLL_INTERVAL = 2


class SupervisorError(ProxyError):
    """ The public socket could not be opened. """


def open_accept_socket(port, backlog=BACKLOG):
    """
    Opens a non-blocking TCP socket listening on all interfaces.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except OSError as e:
        raise SupervisorError("unable to create accept socket: %s" % e) from e
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(('', port))
        sock.listen(backlog)
        sock.setblocking(False)
    except OSError as e:
        sock.close()
        raise SupervisorError("unable to accept connections on port %d: %s" % (port, e)) from e
    logger.info("accepting connections on port %d" % port)
    return sock


class ServerState:
    """
    What is known about the LAN server.
    The accept socket is open only while a server is known.
    """
    def __init__(self):
        self.known = False
        self.endpoint = None
        self.last_seen = None
        self.accept_socket = None


class ServerSupervisor:
    """
    Tracks the LAN server from its announcements and keeps the public socket open
    while the server is alive.

    - When a server is first announced, the public socket is opened.
    - Repeated announcements of the same server only refresh the time it was last seen.
    - When a different server is announced, the public socket is closed and reopened, so
      connections are not accepted on behalf of the old server.
    - When no announcement has been seen for the liveness timeout, the public socket is closed.

    All methods are called from the main loop, which is the only owner of the state.
    """
    def __init__(self, port=PUBLIC_PORT, liveness_timeout=LIVENESS_TIMEOUT, poll_interval=POLL_INTERVAL,
                 socket_factory=open_accept_socket):
        """
        :param port: the public port to accept connections on
        :param liveness_timeout: seconds without an announcement before the server is considered gone
        :param poll_interval: the longest the main loop should wait while a server is known
        :param socket_factory: callable that opens the accept socket for a given port
        """
        self.port = port
        self.poll_interval = poll_interval
        self.liveness = LivenessTimeout(liveness_timeout)
        self.state = ServerState()
        self._socket_factory = socket_factory

    @property
    def known(self):
        return self.state.known

    @property
    def endpoint(self):
        return self.state.endpoint

    @property
    def accept_socket(self):
        return self.state.accept_socket

    @property
    def poll_timeout(self):
        """ how long the main loop may wait for activity. None blocks until an announcement arrives. """
        return self.poll_interval if self.state.known else None

    def announced(self, event):
        """ handler for AnnouncementEvents from the listener """
        self.update(event.endpoint, event.timestamp)

    def update(self, endpoint, current_time):
        """
        Registers an announcement of the given endpoint.
        :return: True if the public socket was (re)opened.
        """
        state = self.state
        if state.known and state.endpoint == endpoint:
            state.last_seen = current_time
            return False
        logger.info("found LAN server at %s" % (endpoint,))
        self._forget()
        state.accept_socket = self._socket_factory(self.port)
        state.known = True
        state.endpoint = endpoint
        state.last_seen = current_time
        return True

    def check_liveness(self, current_time):
        """
        Closes the public socket if the server has not been seen for the liveness timeout.
        :return: True if the server was lost.
        """
        state = self.state
        if not state.known or not self.liveness.expired(state.last_seen, current_time):
            return False
        logger.info("lost contact with LAN server at %s" % (state.endpoint,))
        self._forget()
        return True

    def _forget(self):
        state = self.state
        sock = state.accept_socket
        state.known = False
        state.endpoint = None
        state.last_seen = None
        state.accept_socket = None
        if sock is not None:
            sock.close()

    def close(self):
        self._forget()
