import logging

from mclanproxy.connector.base import FatalConnectError, TransientConnectError
from mclanproxy.connector.socketconn import UpstreamConnector
from mclanproxy.errors import ProxyError
from mclanproxy.relay.buffer import BUFSIZE
from mclanproxy.relay.splice import ConnectionContext

logger = logging.getLogger(__name__)


class AcceptorError(ProxyError):
    """ Accepting a connection on the public socket failed. """


class ConnectionAcceptor:
    """
    Accepts remote clients on the public socket and connects each one to the current LAN server.

    :param supervisor: the ServerSupervisor that owns the public socket and knows the server endpoint
    :param relays: the RelaySupervisor that runs the accepted connections
    :param connector_factory: callable creating an UpstreamConnector given the endpoint and connect timeout
    """
    def __init__(self, supervisor, relays=None, connector_factory=UpstreamConnector, connect_timeout=None,
                 buffer_size=BUFSIZE):
        self.supervisor = supervisor
        self.relays = relays
        self._connector_factory = connector_factory
        self.connect_timeout = connect_timeout
        self.buffer_size = buffer_size

    def try_accept(self):
        """
        Accepts a waiting connection and connects it to the server.
        :return: the ConnectionContext for the connection, or None when there is nothing to relay.
        """
        accept_socket = self.supervisor.accept_socket
        if accept_socket is None:
            return None
        try:
            client, peer = accept_socket.accept()
        except BlockingIOError:
            return None
        except OSError as e:
            raise AcceptorError("error accepting connection: %s" % e) from e

        endpoint = self.supervisor.endpoint
        logger.info("connection accepted from %s:%d" % peer[:2])
        connector = self._connector_factory(endpoint, self.connect_timeout)
        try:
            upstream = connector.connect()
        except TransientConnectError as e:
            logger.info("abandoning connection from %s:%d: %s" % (peer[0], peer[1], e))
            client.close()
            return None
        except FatalConnectError:
            client.close()
            raise
        logger.info("connected %s:%d to LAN server at %s" % (peer[0], peer[1], endpoint))
        return ConnectionContext(client, upstream, peer, endpoint, self.buffer_size)

    def accept_and_spawn(self):
        """
        Accepts a connection and hands it to the relay supervisor.
        :return: the id of the relay unit, or None if no connection was relayed.
        """
        context = self.try_accept()
        if context is None:
            return None
        return self.relays.spawn(context)
