from mclanproxy.support.mixins import CommonEqualityMixin


class LivenessTimeout(CommonEqualityMixin):
    """
    Decides when something that reports in periodically should be considered gone.

    :param timeout: how long (in seconds) after the last report the subject is still considered alive.
    """

    def __init__(self, timeout):
        self.timeout = timeout

    def __call__(self, last_seen, current_time):
        """ returns the length of time until the subject is considered gone.
            Zero or less means the timeout has elapsed.
        """
        return self._time_remaining(last_seen, current_time)

    def _time_remaining(self, last_seen, current_time):
        return 0 if last_seen is None else self.timeout - (current_time - last_seen)

    def expired(self, last_seen, current_time):
        """
        >>> LivenessTimeout(5).expired(10, 14)
        False
        >>> LivenessTimeout(5).expired(10, 15)
        True
        """
        return self(last_seen, current_time) <= 0
