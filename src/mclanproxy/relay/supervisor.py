import itertools
import logging
import socket
import threading

from mclanproxy.relay.splice import ConnectionContext, ConnectionRelay
from mclanproxy.support.events import QueuedEventSource
from mclanproxy.support.mixins import CommonEqualityMixin

logger = logging.getLogger(__name__)


class RelayCompletedEvent(CommonEqualityMixin):
    """ Posted when a relay unit finishes. """
    def __init__(self, unit_id, ok, stats=None):
        """
        :param unit_id: identifies the relay unit
        :param ok: False if the relay ended with an error
        :param stats: the TransferStats for the session, or None if the relay failed unexpectedly
        """
        self.unit_id = unit_id
        self.ok = ok
        self.stats = stats


class RelaySupervisor:
    """
    Runs each connection's relay on its own background thread.

    A relay thread owns its ConnectionContext; nothing is shared with the main loop except
    the completion event, which is queued and wakes the main loop through a socket pair.
    The main loop passes the supervisor to select() and calls publish() when it is readable,
    which delivers completion events on the main loop's thread.

    Relays are not retried or restarted.
    """
    def __init__(self, relay_factory=ConnectionRelay, log=logger):
        """
        :param relay_factory: callable creating the relay for a context, given the context and a unit name.
        """
        self._relay_factory = relay_factory
        self.logger = log
        self.events = QueuedEventSource()
        self.events.add(self._completed)
        self._units = {}        # unit id to thread, for units that have not been published as completed
        self._ids = itertools.count(1)
        self._wakeup, self._notifier = socket.socketpair()
        self._wakeup.setblocking(False)
        self._notifier.setblocking(False)

    def fileno(self):
        return self._wakeup.fileno()

    @property
    def active(self):
        return len(self._units)

    def spawn(self, context: ConnectionContext):
        """
        Starts a relay unit for the connection.
        :return: the unit id
        """
        unit_id = "relay-%d" % next(self._ids)
        relay = self._relay_factory(context, name=unit_id)
        thread = threading.Thread(target=self._run, args=(unit_id, relay), name=unit_id, daemon=True)
        self._units[unit_id] = thread
        thread.start()
        self.logger.info("%s: relaying %s to %s" % (unit_id, _describe(context.peer), context.endpoint))
        return unit_id

    def _run(self, unit_id, relay):
        """ the body of a relay thread """
        stats = None
        try:
            stats = relay.run()
        except Exception as e:
            self.logger.exception("%s: unexpected error: %s" % (unit_id, e))
        finally:
            self.events.fire(RelayCompletedEvent(unit_id, stats is not None and stats.ok, stats))
            self._notify()

    def _notify(self):
        try:
            self._notifier.send(b'\0')
        except BlockingIOError:
            pass    # the main loop has wake-ups pending already
        except OSError as e:
            self.logger.debug("unable to wake main loop: %s" % e)

    def publish(self):
        """
        Delivers completion events on the calling thread.
        :return: the events delivered
        """
        while True:
            try:
                if not self._wakeup.recv(4096):
                    break
            except BlockingIOError:
                break
        return self.events.publish()

    def _completed(self, event: RelayCompletedEvent):
        self._units.pop(event.unit_id, None)
        self.logger.info("%s finished: %s" % (event.unit_id, 'ok' if event.ok else 'error'))

    def join(self, timeout=None):
        """ waits for the running relay threads to end """
        for thread in list(self._units.values()):
            thread.join(timeout)

    def close(self):
        self._wakeup.close()
        self._notifier.close()


def _describe(peer):
    """
    >>> _describe(('10.0.0.9', 51000))
    '10.0.0.9:51000'
    """
    if peer is None:
        return 'client'
    return "%s:%d" % peer[:2]
