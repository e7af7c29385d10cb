from unittest import TestCase

from hamcrest import is_, assert_that

from mclanproxy.support.liveness import LivenessTimeout


class LivenessTimeoutTest(TestCase):

    def setUp(self):
        self.timeout = 5

    def test_never_seen_is_expired(self):
        sut = LivenessTimeout(self.timeout)
        assert_that(sut(None, 123), is_(0))
        assert_that(sut.expired(None, 123), is_(True))

    def test_time_remaining_decreases(self):
        sut = LivenessTimeout(self.timeout)
        assert_that(sut(100, 100), is_(5))
        assert_that(sut(100, 102), is_(3))
        assert_that(sut(100, 107), is_(-2))

    def test_expires_at_exactly_the_timeout(self):
        sut = LivenessTimeout(self.timeout)
        assert_that(sut.expired(100, 104.9), is_(False))
        assert_that(sut.expired(100, 105), is_(True))

    def test_equality(self):
        assert_that(LivenessTimeout(5), is_(LivenessTimeout(5)))
        assert_that(LivenessTimeout(5) != LivenessTimeout(6), is_(True))
