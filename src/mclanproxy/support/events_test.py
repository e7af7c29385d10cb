import threading
import unittest
from unittest.mock import Mock, call

from hamcrest import assert_that, is_, empty, contains_exactly

from mclanproxy.support.events import EventSource, QueuedEventSource


class EventsTest(unittest.TestCase):

    def test_handlers_empty(self):
        sut = EventSource()
        assert_that(sut.handlers(), is_(empty()))

    def test_handlers_not_empty(self):
        sut = EventSource()
        handler = Mock()
        assert_that(sut.add(handler), is_(sut))
        assert_that(list(sut.handlers()), is_([handler]))

    def test_no_listeners(self):
        sut = EventSource()
        sut.fire(1)

    def test_listeners(self):
        sut = EventSource()
        l1 = Mock()
        l2 = Mock()
        sut.add(l1).add(l2)
        sut.fire(1, v="hey")
        l1.assert_called_once_with(1, v="hey")
        l2.assert_called_once_with(1, v="hey")


class QueuedEventSourceTest(unittest.TestCase):
    def test_constructor(self):
        sut = QueuedEventSource()
        assert_that(sut.event_queue.empty(), is_(True))

    def test_fire_is_deferred_until_publish(self):
        sut = QueuedEventSource()
        handler = Mock()
        sut.add(handler)
        sut.fire(1)
        sut.fire(2)
        sut.fire(3)
        handler.assert_not_called()

        assert_that(sut.publish(), is_([1, 2, 3]))
        handler.assert_has_calls([call(1), call(2), call(3)])

    def test_fire_events(self):
        sut = QueuedEventSource()
        sut._fire_all = Mock()
        sut.event_queue.put(1)
        sut.event_queue.put(2)
        sut.publish()
        sut._fire_all.assert_called_once_with([1, 2])

    def test_fire_events_empty(self):
        sut = QueuedEventSource()
        sut._fire_all = Mock()
        assert_that(sut.publish(), is_(empty()))
        sut._fire_all.assert_not_called()

    def test_events_fired_on_another_thread_are_published_on_caller(self):
        sut = QueuedEventSource()
        threads = []
        sut.add(lambda e: threads.append(threading.current_thread()))
        worker = threading.Thread(target=sut.fire, args=("done",))
        worker.start()
        worker.join()
        assert_that(threads, is_(empty()))
        sut.publish()
        assert_that(threads, contains_exactly(threading.current_thread()))
