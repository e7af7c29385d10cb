import socket

# size of each splicing buffer
BUFSIZE = 8192


class ConnectionBuffer:
    """
    A single-slot byte buffer for one direction of a relay.

    The buffer is either empty, and can be filled by reading a socket, or holds
    bytes that are waiting to be written. It is never filled while bytes are pending,
    so a slow reader on one side holds back reading from the other side.

    :param capacity: the most bytes read in one go
    """
    def __init__(self, capacity=BUFSIZE):
        self.capacity = capacity
        self.offset = 0             # start of the pending bytes
        self.length = 0             # number of pending bytes
        self.accumulated = 0        # total bytes written out of this buffer
        self._buf = bytearray(capacity)

    @property
    def empty(self):
        return self.length == 0

    @property
    def pending(self) -> bytes:
        return bytes(self._buf[self.offset:self.offset + self.length])

    def fill_from(self, sock: socket.socket) -> int:
        """
        Reads from the socket into the buffer.
        BlockingIOError from the socket is propagated and leaves the buffer empty.
        :return: the number of bytes read. 0 means the peer closed the connection.
        """
        if self.length:
            raise BufferError("buffer still holds %d bytes" % self.length)
        count = sock.recv_into(self._buf, self.capacity)
        self.offset = 0
        self.length = count
        return count

    def drain_to(self, sock: socket.socket) -> int:
        """
        Writes as many of the pending bytes as the socket accepts.
        :return: the number of bytes written
        """
        if not self.length:
            raise BufferError("buffer is empty")
        count = sock.send(memoryview(self._buf)[self.offset:self.offset + self.length])
        self.offset += count
        self.length -= count
        self.accumulated += count
        return count
