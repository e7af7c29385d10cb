from mclanproxy.errors import ProxyError


class ConnectorError(Exception):
    """ Indicates an error opening a connection to the upstream server. """


class TransientConnectError(ConnectorError):
    """ The server could not be reached this time. Only the one connection attempt is abandoned. """


class FatalConnectError(ConnectorError, ProxyError):
    """ Connecting failed in a way that is not expected to go away. """
