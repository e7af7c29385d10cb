import logging
import select
import time

from mclanproxy.config.config import ProxyConfig
from mclanproxy.connector.acceptor import ConnectionAcceptor
from mclanproxy.discovery.listener import AnnouncementListener
from mclanproxy.errors import ProxyError
from mclanproxy.relay.supervisor import RelaySupervisor
from mclanproxy.server_supervisor import ServerSupervisor

logger = logging.getLogger(__name__)


class LanProxy:
    """
    The main loop. Waits for announcements, connections on the public socket and relay completions,
    and dispatches each to the component that handles it.

    While no server is known the loop blocks until an announcement arrives. While a server is known
    the wait is bounded by the poll interval so the server's liveness is checked even when nothing
    else happens.

    Components can be passed in, otherwise they are created from the config.
    """
    def __init__(self, config: ProxyConfig, listener=None, supervisor=None, relays=None, acceptor=None,
                 current_time=time.monotonic):
        self.config = config
        self.current_time = current_time
        self.listener = listener if listener is not None else AnnouncementListener(config.interface)
        self.supervisor = supervisor if supervisor is not None else \
            ServerSupervisor(config.port, config.liveness_timeout, config.poll_interval)
        self.relays = relays if relays is not None else RelaySupervisor()
        self.acceptor = acceptor if acceptor is not None else \
            ConnectionAcceptor(self.supervisor, self.relays, connect_timeout=config.connect_timeout,
                               buffer_size=config.buffer_size)
        self.listener.listeners.add(self.supervisor.announced)

    def _readers(self):
        readers = [self.listener, self.relays]
        accept_socket = self.supervisor.accept_socket
        if accept_socket is not None:
            readers.append(accept_socket)
        return readers

    def step(self):
        """
        Waits for activity once and handles it.
        """
        supervisor = self.supervisor
        try:
            readable, _, _ = select.select(self._readers(), [], [], supervisor.poll_timeout)
        except OSError as e:
            raise ProxyError("error waiting for activity: %s" % e) from e

        if not readable:
            supervisor.check_liveness(self.current_time())
            return
        if self.relays in readable:
            self.relays.publish()
        if self.listener in readable:
            self.listener.update(self.current_time)
        # liveness is checked on every wake-up, not just on timeouts
        supervisor.check_liveness(self.current_time())
        accept_socket = supervisor.accept_socket
        if accept_socket is not None and accept_socket in readable:
            self.acceptor.accept_and_spawn()

    def run(self):
        """
        Runs the main loop until a fatal error. The components are closed on return.
        """
        try:
            while True:
                self.step()
        finally:
            self.close()

    def close(self):
        self.supervisor.close()
        self.listener.close()
        self.relays.close()
