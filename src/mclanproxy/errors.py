class ProxyError(Exception):
    """ A fatal error. The main loop cannot continue and the process exits. """
