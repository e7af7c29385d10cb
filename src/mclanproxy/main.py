import argparse
import logging

from configobj import ConfigObjError

from mclanproxy.config.config import load_proxy_config
from mclanproxy.errors import ProxyError
from mclanproxy.proxy import LanProxy

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    'silent': logging.WARNING,
    'verbose': logging.INFO,
    'extra': logging.DEBUG,
}

LOG_FORMATS = {
    'silent': '%(message)s',
    'verbose': '%(asctime)s %(message)s',
    'extra': '%(asctime)s [%(threadName)s] %(name)s: %(message)s',
}


def build_parser():
    parser = argparse.ArgumentParser(prog='mclanproxy',
                                     description='Proxy server enabling remote access to Minecraft LAN worlds')
    parser.add_argument('-p', '--port', type=int, help='public port')
    parser.add_argument('-v', dest='verbosity', action='store_const', const='verbose', help='verbose')
    parser.add_argument('-V', dest='verbosity', action='store_const', const='extra', help='extra verbose')
    parser.add_argument('-i', '--interface', help='local interface address to receive announcements on')
    parser.add_argument('-c', '--config', help='directory containing lanproxy.cfg')
    return parser


def configure_logging(verbosity):
    logging.basicConfig(level=LOG_LEVELS[verbosity], format=LOG_FORMATS[verbosity])


def main(argv=None, proxy_factory=LanProxy):
    """
    Runs the proxy until a fatal error or keyboard interrupt.
    :return: the process exit status
    """
    args = build_parser().parse_args(argv)
    try:
        config = load_proxy_config(args.config, port=args.port, verbosity=args.verbosity, interface=args.interface)
    except (ConfigObjError, IOError) as e:
        logging.basicConfig()
        logger.critical("invalid configuration: %s" % e)
        return 1
    configure_logging(config.verbosity)
    try:
        proxy_factory(config).run()
    except ProxyError as e:
        logger.critical(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
    return 0
