from queue import Empty, Queue


class EventSource(object):
    """
    A list of handlers that are invoked with each event fired.
    Handlers are called on the thread that fires the event.
    """

    def __init__(self):
        self._handlers = []

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        self._fire(*args, **kwargs)

    def _fire_all(self, events):
        for e in events:
            self._fire(e)

    def _fire(self, *args, **kwargs):
        for handler in self._handlers:
            handler(*args, **kwargs)


class QueuedEventSource(EventSource):
    """
    fire() posts the event to the queue and may be called from any thread.
    The queued events are delivered to the handlers when a thread calls publish().
    """
    def __init__(self):
        super().__init__()
        self.event_queue = Queue()

    def fire(self, event):
        self.event_queue.put(event)

    def pending(self):
        """ drains the queue without blocking """
        events = []
        while True:
            try:
                events.append(self.event_queue.get_nowait())
            except Empty:
                return events

    def publish(self):
        """ publishes any queued events on the calling thread.
        :return: the events published
        """
        events = self.pending()
        if events:
            self._fire_all(events)
        return events
