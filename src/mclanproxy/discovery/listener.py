import logging
import socket
import struct
import time

from mclanproxy.discovery.announcement import ANNOUNCEMENT_BUFSIZE, AnnouncementError, AnnouncementMessage, \
    parse_message
from mclanproxy.errors import ProxyError
from mclanproxy.support.events import EventSource
from mclanproxy.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)

# multicast group and port used for LAN world announcements
ANNOUNCE_GROUP = '224.0.2.60'
ANNOUNCE_PORT = 4445


class DiscoveryError(ProxyError):
    """ The announcement socket could not be set up or read. """


class AnnouncementEvent(CommonEqualityMixin):
    """ Notification that a server announced itself. """
    def __init__(self, source, endpoint, timestamp):
        """
        :param source   The AnnouncementListener that posted this event
        :param endpoint The endpoint resolved from the announcement
        :param timestamp When the announcement arrived
        """
        self.source = source
        self.endpoint = endpoint
        self.timestamp = timestamp


def membership_request(group, interface=None):
    """
    Builds the ip_mreq structure for joining a multicast group.
    :param interface: the address of the local interface to join on, or None for any interface.

    >>> membership_request('224.0.2.60', '192.168.1.2')
    b'\\xe0\\x00\\x02<\\xc0\\xa8\\x01\\x02'
    """
    return struct.pack('4s4s', socket.inet_aton(group), socket.inet_aton(interface or '0.0.0.0'))


def open_announcement_socket(group=ANNOUNCE_GROUP, port=ANNOUNCE_PORT, interface=None):
    """
    Creates a UDP socket bound to the announcement port and joined to the multicast group.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    except OSError as e:
        raise DiscoveryError("unable to create announcement socket: %s" % e) from e
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership_request(group, interface))
        sock.bind((group, port))
        sock.setblocking(False)
    except OSError as e:
        sock.close()
        raise DiscoveryError("unable to listen for announcements on %s:%d: %s" % (group, port, e)) from e
    return sock


class AnnouncementListener:
    """
    Listens for server announcements on the multicast group.

    Each call to update() reads one datagram. When it holds a valid announcement an AnnouncementEvent
    is fired to the listeners. Datagrams that are not announcements are ignored.

    The listener has a fileno() so it can be passed directly to select().
    """
    def __init__(self, interface=None, group=ANNOUNCE_GROUP, port=ANNOUNCE_PORT, sock=None):
        """
        :param interface: the local interface address to receive announcements on. None means any interface.
        :param sock: an already opened announcement socket. When None, a socket is opened for the group and port.
        """
        self.listeners = EventSource()
        self.group = group
        self.port = port
        self.sock = sock if sock is not None else open_announcement_socket(group, port, interface)
        logger.info("listening for announcements on %s:%d" % (group, port))

    def fileno(self):
        return self.sock.fileno()

    def receive(self):
        """
        Reads one datagram from the socket.
        :return: the AnnouncementMessage, or None if there is no datagram waiting.
        """
        try:
            data, sender = self.sock.recvfrom(ANNOUNCEMENT_BUFSIZE)
        except BlockingIOError:
            return None
        except OSError as e:
            raise DiscoveryError("error receiving announcement: %s" % e) from e
        return AnnouncementMessage(data, sender)

    def update(self, current_time=time.monotonic):
        """
        Reads the next announcement and notifies listeners when it names a server.
        :return: the event fired, or None.
        """
        message = self.receive()
        if message is None:
            return None
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("announcement: %s" % message.text)
            logger.debug("sender: %s:%d" % message.sender[:2])
        try:
            endpoint = parse_message(message)
        except AnnouncementError as e:
            logger.debug("ignoring datagram from %s: %s" % (message.sender[0], e))
            return None
        event = AnnouncementEvent(self, endpoint, current_time())
        self.listeners.fire(event)
        return event

    def close(self):
        self.sock.close()
