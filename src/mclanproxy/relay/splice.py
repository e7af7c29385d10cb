"""
    Relays bytes between a remote client and the LAN server.

    Both sockets are non-blocking and are waited on with poll(). Each direction has one
    buffer; while a buffer holds bytes the relay waits for its destination to become
    writable, and while it is empty the relay waits for its source to become readable.
    Only an error condition on a socket ends the relay with an error; urgent data is not
    relayed. The first end of stream from either peer ends the relay in both directions.
"""
import logging
import select
import socket
import time

from mclanproxy.relay.buffer import BUFSIZE, ConnectionBuffer
from mclanproxy.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)

CLIENT = 'client'
UPSTREAM = 'server'


class RelayError(IOError):
    """ A socket error ended the relay. """


class ConnectionContext:
    """
    The sockets and buffers of one relayed connection.
    The context is owned by a single relay and closed when the relay ends.

    :param client: the socket accepted from the remote client
    :param upstream: the socket connected to the LAN server
    :param peer: the remote client's address, for logging
    :param endpoint: the LAN server's endpoint, for logging
    """
    def __init__(self, client: socket.socket, upstream: socket.socket, peer=None, endpoint=None,
                 buffer_size=BUFSIZE):
        self.client = client
        self.upstream = upstream
        self.peer = peer
        self.endpoint = endpoint
        self.client_to_upstream = ConnectionBuffer(buffer_size)
        self.upstream_to_client = ConnectionBuffer(buffer_size)
        self.closed = False

    def close(self):
        """ closes both sockets. Subsequent calls do nothing. """
        if self.closed:
            return
        self.closed = True
        try:
            self.client.close()
        finally:
            self.upstream.close()


class TransferStats(CommonEqualityMixin):
    """ The outcome of a relay. """
    def __init__(self, client_to_upstream, upstream_to_client, duration, ok):
        """
        :param client_to_upstream: bytes delivered to the server
        :param upstream_to_client: bytes delivered to the client
        :param duration: the length of the session in seconds
        :param ok: False if the relay ended with an error
        """
        self.client_to_upstream = client_to_upstream
        self.upstream_to_client = upstream_to_client
        self.duration = duration
        self.ok = ok

    @property
    def outcome(self):
        return 'ok' if self.ok else 'error'


def format_duration(secs):
    """
    >>> format_duration(3725)
    '01:02:05'
    """
    secs = int(secs)
    return "%02d:%02d:%02d" % (secs // 3600, (secs // 60) % 60, secs % 60)


def format_transfer(total, secs):
    """
    Describes the bytes transferred in one direction. Rates above 10000 bytes/s are shown in K.

    >>> format_transfer(100, 0)
    '100 bytes transferred'
    >>> format_transfer(50000, 2)
    '50000 bytes transferred, 25 Kbytes/s'
    """
    secs = int(secs)
    if secs == 0:
        return "%d bytes transferred" % total
    rate = total // secs
    metric = ''
    if rate > 10000:
        rate //= 1000
        metric = 'K'
    return "%d bytes transferred, %d %sbytes/s" % (total, rate, metric)


class ConnectionRelay:
    """
    Splices the client and upstream sockets of a connection until either peer closes
    its end or an error occurs.
    """
    def __init__(self, context: ConnectionContext, name='relay', current_time=time.monotonic, log=logger):
        self.context = context
        self.name = name
        self.current_time = current_time
        self.logger = log

    def run(self) -> TransferStats:
        """
        Runs the relay to completion. Both sockets are closed on return.
        :return: the statistics for the session
        """
        context = self.context
        start = self.current_time()
        ok = False
        try:
            context.client.setblocking(False)
            context.upstream.setblocking(False)
            ok = self._splice()
        except RelayError as e:
            self.logger.info("%s: %s" % (self.name, e))
        except OSError as e:
            self.logger.info("%s: socket error: %s" % (self.name, e))
        finally:
            context.close()
        stats = TransferStats(context.client_to_upstream.accumulated, context.upstream_to_client.accumulated,
                              self.current_time() - start, ok)
        self._report(stats)
        return stats

    def _report(self, stats):
        log = self.logger
        log.info("%s: session duration %s h:m:s" % (self.name, format_duration(stats.duration)))
        log.info("%s: client-to-server: %s" % (self.name, format_transfer(stats.client_to_upstream, stats.duration)))
        log.info("%s: server-to-client: %s" % (self.name, format_transfer(stats.upstream_to_client, stats.duration)))

    def _interest(self):
        """
        Determines the poll events to wait for on each socket.
        A socket is read only when the buffer it fills is empty, and written only when the buffer
        it drains holds bytes. Error conditions are reported by poll() whatever the events asked for.
        """
        context = self.context
        client_events = select.POLLIN if context.client_to_upstream.empty else 0
        upstream_events = select.POLLIN if context.upstream_to_client.empty else 0
        if not context.client_to_upstream.empty:
            upstream_events |= select.POLLOUT
        if not context.upstream_to_client.empty:
            client_events |= select.POLLOUT
        return [(context.client, client_events), (context.upstream, upstream_events)]

    def _wait(self):
        """
        Waits until either socket is ready.
        :return: the sockets that failed, the sockets to read and the sockets to write
        """
        poller = select.poll()
        sockets = {}
        for sock, events in self._interest():
            poller.register(sock, events)
            sockets[sock.fileno()] = sock, events
        try:
            ready = poller.poll()
        except OSError as e:
            raise RelayError("poll failed: %s" % e) from e
        failed, readable, writable = [], [], []
        for fd, revents in ready:
            sock, events = sockets[fd]
            if revents & (select.POLLERR | select.POLLNVAL):
                failed.append(sock)
            # a hang up is read as the end of stream
            if events & select.POLLIN and revents & (select.POLLIN | select.POLLHUP):
                readable.append(sock)
            if revents & select.POLLOUT:
                writable.append(sock)
        return failed, readable, writable

    def _splice(self):
        """
        :return: True when a peer closed the connection. Errors are raised as RelayError.
        """
        while True:
            failed, readable, writable = self._wait()
            for sock in failed:
                self._check_error(sock)
            for sock in readable:
                if not self._read(sock):
                    return True
            for sock in writable:
                self._write(sock)

    def _peer_name(self, sock):
        return CLIENT if sock is self.context.client else UPSTREAM

    def _check_error(self, sock):
        error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        reason = "socket error %d" % error if error else "error condition"
        raise RelayError("%s on %s socket" % (reason, self._peer_name(sock)))

    def _read(self, sock):
        """
        Reads from the socket into the buffer it fills.
        :return: False at the end of stream
        """
        context = self.context
        buffer = context.client_to_upstream if sock is context.client else context.upstream_to_client
        try:
            count = buffer.fill_from(sock)
        except BlockingIOError:
            return True
        except OSError as e:
            raise RelayError("error reading %s socket: %s" % (self._peer_name(sock), e)) from e
        if not count:
            self.logger.info("%s: EOF on %s socket" % (self.name, self._peer_name(sock)))
            return False
        return True

    def _write(self, sock):
        context = self.context
        buffer = context.upstream_to_client if sock is context.client else context.client_to_upstream
        try:
            buffer.drain_to(sock)
        except BlockingIOError:
            pass
        except OSError as e:
            raise RelayError("error writing %s socket: %s" % (self._peer_name(sock), e)) from e
