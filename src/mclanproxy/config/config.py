import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

from mclanproxy.relay.buffer import BUFSIZE
from mclanproxy.server_supervisor import LIVENESS_TIMEOUT, POLL_INTERVAL, PUBLIC_PORT
from mclanproxy.support.mixins import CommonEqualityMixin

# The default extension for configuration files
config_extension = '.cfg'

# The base name of the proxy configuration files
config_name = 'lanproxy'

# The directory holding the default configuration and schema
package_directory = os.path.dirname(__file__)

VERBOSITY = ('silent', 'verbose', 'extra')


class ProxyConfig(CommonEqualityMixin):
    """
    The settings the proxy runs with. An instance is passed to each component that needs a setting.
    """
    def __init__(self, port=PUBLIC_PORT, verbosity='silent', interface=None, liveness_timeout=LIVENESS_TIMEOUT,
                 poll_interval=POLL_INTERVAL, buffer_size=BUFSIZE, connect_timeout=5.0):
        self.port = port                            # public port for remote connections
        self.verbosity = verbosity                  # one of VERBOSITY
        self.interface = interface                  # local address to join the multicast group on
        self.liveness_timeout = liveness_timeout
        self.poll_interval = poll_interval
        self.buffer_size = buffer_size
        self.connect_timeout = connect_timeout


def config_path(name, directory, flavor=None):
    """
    Locates a configuration file. A flavor is a specialization of the base configuration,
    named after the base and the flavor, such as ``lanproxy.schema.cfg``.
    """
    filename = name + '.' + flavor if flavor else name
    return os.path.join(directory, filename + config_extension)


def read_config_file(path, required=True) -> ConfigObj:
    """
    Parses a configuration file. An optional file that does not exist reads as an empty configuration.
    :raises IOError: when a required file does not exist
    :raises ConfigObjError: when the file cannot be parsed. The message names the file.
    """
    if not required and not os.path.exists(path):
        return ConfigObj()
    try:
        return ConfigObj(path, file_error=True)
    except ConfigObjError as e:
        raise type(e)("%s in %s" % (e, path)) from e


def platform_flavor(system=None):
    """
    The flavor of the platform specific configuration, from the system name reported by platform.system().

    >>> platform_flavor('Darwin')
    'osx'
    """
    system = (system or platform.system()).lower()
    return 'osx' if system == 'darwin' else system


def load_config(name, directory, defaults_directory=package_directory):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later ones overriding earlier ones:
        - the default flavor (from defaults_directory)
        - the platform flavor
        - the user override in the home directory
        - the base configuration
        The merged configuration is validated against the schema flavor
        in defaults_directory, which also supplies the values of missing settings.
    :param directory: the location of the configuration files. May be None to use only the defaults
        and the user override.
    :return: the validated ConfigObj
    """
    default_config = read_config_file(config_path(name, defaults_directory, 'default'))
    platform_config = read_config_file(config_path(name, directory or defaults_directory, platform_flavor()), False)
    user_config = read_config_file(os.path.expanduser('~/' + name + config_extension), False)
    local_config = read_config_file(config_path(name, directory), False) if directory else ConfigObj()

    config = ConfigObj(configspec=config_path(name, defaults_directory, 'schema'))
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:   An iterable that lists the names of the config to resolve
    :return: The configuration object identified by the path
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


def load_proxy_config(directory=None, **overrides) -> ProxyConfig:
    """
    Builds the proxy settings from the configuration files, then applies any overrides given.
    Overrides that are None are ignored.
    :param directory: the directory containing lanproxy.cfg, if any
    """
    target = ProxyConfig()
    conf = fetch_conf_path(load_config(config_name, directory), ['proxy'])
    if conf:
        apply_conf(conf, target)
    for k, v in overrides.items():
        if v is not None and hasattr(target, k):
            setattr(target, k, v)
    return target
