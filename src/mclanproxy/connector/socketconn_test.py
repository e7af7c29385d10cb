import errno
import socket
import unittest
from unittest.mock import Mock, patch

from hamcrest import is_, assert_that, raises, calling

from mclanproxy.connector.base import TransientConnectError, FatalConnectError, ConnectorError
from mclanproxy.connector.socketconn import UpstreamConnector, Endpoint, TRANSIENT_CONNECT_ERRORS
from mclanproxy.errors import ProxyError

endpoint = Endpoint('10.0.0.5', 25565)


class UpstreamConnectorTest(unittest.TestCase):
    def test_constructor(self):
        sut = UpstreamConnector(endpoint, 3)
        assert_that(sut.endpoint, is_(endpoint))
        assert_that(sut.timeout, is_(3))

    def patch_socket(self):
        return patch('mclanproxy.connector.socketconn.socket')

    def test_successful_connect(self):
        sock_args = (1, 2)
        sut = UpstreamConnector(endpoint, 3, sock_args)
        with self.patch_socket() as sock_module:
            sock_module.timeout = socket.timeout
            sock_instance = Mock()
            sock_module.socket.return_value = sock_instance
            assert_that(sut.connect(), is_(sock_instance))
            sock_module.socket.assert_called_once_with(*sock_args)
            sock_instance.settimeout.assert_any_call(3)
            sock_instance.connect.assert_called_once_with(('10.0.0.5', 25565))
            sock_instance.settimeout.assert_called_with(None)

    def assert_connect_error(self, error, expected):
        sut = UpstreamConnector(endpoint)
        with self.patch_socket() as sock_module:
            sock_module.timeout = socket.timeout
            sock_instance = Mock()
            sock_module.socket.return_value = sock_instance
            sock_instance.connect.side_effect = error
            assert_that(calling(sut.connect), raises(expected))
            sock_instance.close.assert_called_once_with()

    def test_transient_errors(self):
        for code in [errno.ETIMEDOUT, errno.ECONNRESET, errno.ECONNREFUSED, errno.EHOSTDOWN,
                     errno.EHOSTUNREACH, errno.ENETUNREACH]:
            assert_that(code in TRANSIENT_CONNECT_ERRORS, is_(True))
            self.assert_connect_error(OSError(code, "cannot connect"), TransientConnectError)

    def test_timeout_is_transient(self):
        self.assert_connect_error(socket.timeout("timed out"), TransientConnectError)

    def test_other_errors_are_fatal(self):
        self.assert_connect_error(OSError(errno.EACCES, "permission denied"), FatalConnectError)
        self.assert_connect_error(OSError(errno.EADDRNOTAVAIL, "cannot assign address"), FatalConnectError)

    def test_socket_creation_failure_is_fatal(self):
        sut = UpstreamConnector(endpoint)
        with self.patch_socket() as sock_module:
            sock_module.socket.side_effect = OSError(errno.EMFILE, "too many open files")
            assert_that(calling(sut.connect), raises(FatalConnectError))

    def test_error_hierarchy(self):
        assert_that(issubclass(TransientConnectError, ConnectorError), is_(True))
        assert_that(issubclass(TransientConnectError, ProxyError), is_(False))
        assert_that(issubclass(FatalConnectError, ConnectorError), is_(True))
        assert_that(issubclass(FatalConnectError, ProxyError), is_(True))

    def test_refused_by_real_server(self):
        listener = socket.socket()
        listener.bind(('127.0.0.1', 0))
        port = listener.getsockname()[1]
        listener.close()    # nothing is listening on the port now
        sut = UpstreamConnector(Endpoint('127.0.0.1', port), 5)
        assert_that(calling(sut.connect), raises(TransientConnectError))
