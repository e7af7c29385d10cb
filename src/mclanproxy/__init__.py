"""

Remote access to LAN game worlds

A game server "opened to LAN" advertises itself by multicasting announcements on the local
network. The proxy listens for these announcements and, while a server is announcing, accepts
connections on a public port and relays each one to the server.

- AnnouncementListener - joins the announcement multicast group and fires an AnnouncementEvent
    for each datagram that names a server endpoint.
- ServerSupervisor - tracks the announced server. The public socket is opened when a server is
    first announced, reopened when the server moves to a different endpoint, and closed when no
    announcement has been seen for the liveness timeout.
- ConnectionAcceptor - accepts a remote client on the public socket and connects it to the server.
- RelaySupervisor - runs each accepted connection as a ConnectionRelay on its own thread.
    Completion is queued and published on the main loop.
- ConnectionRelay - splices the client and server sockets through two single-slot buffers
    until either side closes.
- LanProxy - the main loop tying these together.


## Threading

The main loop runs on the main thread and is the only user of the server state and the public
socket. It waits with select() on the announcement socket, the public socket (while open) and
the relay supervisor's wake-up socket.

Each relay runs on its own daemon thread, owning both sockets of its connection. The only thing
a relay thread shares is the completion event it posts to the supervisor's queue.

"""
