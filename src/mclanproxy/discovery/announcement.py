"""
    Decoding of LAN world announcements.

    A game server that has been opened to the LAN multicasts a short text message
    every second or so, such as::

        [MOTD]Steve - Survival[/MOTD][AD]25565[/AD]

    The ``[AD]`` tag holds the TCP port the world is served on. The port may be
    prefixed by an IPv4 address, ``[AD]10.0.0.5:25565[/AD]``, which then takes precedence
    over the address the datagram was sent from.
"""
import re
import socket

from mclanproxy.connector.socketconn import Endpoint
from mclanproxy.support.mixins import CommonEqualityMixin

# The size of the receive buffer. The last byte is reserved for the terminator.
ANNOUNCEMENT_BUFSIZE = 256

AD_START = '[AD]'
AD_END = '[/AD]'

MAX_PORT = 0xFFFF

_port_pattern = re.compile(r'^\s*(\d+)\s*$')


class AnnouncementError(ValueError):
    """ The datagram is not a usable announcement. """


class MissingTagError(AnnouncementError):
    """ The announcement has no complete [AD]...[/AD] tag pair. """


class InvalidAddressError(AnnouncementError):
    """ The address in the announcement is not a dotted-quad IPv4 address. """


class InvalidPortError(AnnouncementError):
    """ The port in the announcement is not a decimal number below 65536. """


class AnnouncementMessage(CommonEqualityMixin):
    """ A raw announcement datagram and the (address, port) it was sent from. """

    def __init__(self, data: bytes, sender):
        self.data = truncate(data)
        self.sender = sender

    @property
    def text(self):
        return decode(self.data)


def truncate(data: bytes) -> bytes:
    """
    Limits the datagram to the payload that fits the announcement buffer, ending at the first NUL.

    >>> truncate(b'abc\\0def')
    b'abc'
    >>> len(truncate(b'x' * 300))
    255
    """
    data = bytes(data[:ANNOUNCEMENT_BUFSIZE - 1])
    end = data.find(b'\0')
    return data if end < 0 else data[:end]


def decode(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')


def extract_ad(text: str) -> str:
    """
    Retrieves the content of the first [AD] tag.

    >>> extract_ad('[MOTD]world[/MOTD][AD]25565[/AD]')
    '25565'
    """
    start = text.find(AD_START)
    if start < 0:
        raise MissingTagError("no %s tag" % AD_START)
    start += len(AD_START)
    end = text.find(AD_END, start)
    if end < 0:
        raise MissingTagError("no %s tag after %s" % (AD_END, AD_START))
    return text[start:end]


def parse_port(text: str) -> int:
    match = _port_pattern.match(text)
    if not match:
        raise InvalidPortError("port '%s' is not a decimal number" % text)
    port = int(match.group(1))
    if port > MAX_PORT:
        raise InvalidPortError("port %d is out of range" % port)
    return port


def parse_address(text: str) -> str:
    """
    Accepts only a dotted-quad IPv4 address. Host names are never resolved.

    >>> parse_address('192.168.1.20')
    '192.168.1.20'
    """
    try:
        socket.inet_pton(socket.AF_INET, text)
    except (OSError, ValueError) as e:
        raise InvalidAddressError("address '%s' is not an IPv4 address" % text) from e
    return text


def parse_announcement(data: bytes, sender_address: str) -> Endpoint:
    """
    Resolves the server endpoint from an announcement datagram.

    :param data: the datagram received
    :param sender_address: the address the datagram was sent from. This is used when the
        announcement names only the port.
    :return: the endpoint of the announced server
    :raises AnnouncementError: when the datagram is not a valid announcement.
    """
    content = extract_ad(decode(truncate(data)))
    address, sep, port = content.rpartition(':')
    address = address.strip() if sep else ''
    port = parse_port(port)
    return Endpoint(parse_address(address) if address else sender_address, port)


def parse_message(message: AnnouncementMessage) -> Endpoint:
    return parse_announcement(message.data, message.sender[0])
