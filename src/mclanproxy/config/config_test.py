import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from configobj import ConfigObjError, ConfigObj
from hamcrest import assert_that, is_, equal_to, calling, raises, none

from mclanproxy.config.config import config_path, read_config_file, platform_flavor, load_config, \
    fetch_conf_path, apply_conf, load_proxy_config, ProxyConfig, package_directory, config_name


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()
        # keep the user's own configuration out of the tests
        home = patch('mclanproxy.config.config.os.path.expanduser',
                     side_effect=lambda p: os.path.join(self.directory, 'home', os.path.basename(p)))
        home.start()
        self.addCleanup(home.stop)

    def tearDown(self):
        shutil.rmtree(self.directory)

    def write(self, name, text):
        with open(os.path.join(self.directory, name), 'w') as f:
            f.write(text)

    def test_config_file_not_found(self):
        assert_that(calling(read_config_file).with_args(os.path.join(self.directory, 'blah.cfg')), raises(IOError))

    def test_config_file_optional(self):
        assert_that(read_config_file(os.path.join(self.directory, 'blah.cfg'), False), is_({}))

    def test_config_file_invalid_syntax(self):
        self.write('broken.cfg', '[[proxy]\nport = 1\n')
        assert_that(calling(read_config_file).with_args(os.path.join(self.directory, 'broken.cfg')),
                    raises(ConfigObjError, "in .*broken.cfg"))

    def test_default_files_are_shipped(self):
        for flavor in ['default', 'schema']:
            file = config_path(config_name, package_directory, flavor)
            assert_that(os.path.exists(file), is_(True), "expected config path %s to exist" % file)

    def test_config_path(self):
        assert_that(config_path('lanproxy', '/etc'), is_(os.path.join('/etc', 'lanproxy.cfg')))
        assert_that(config_path('lanproxy', '/etc', 'schema'), is_(os.path.join('/etc', 'lanproxy.schema.cfg')))

    def test_platform_flavor(self):
        assert_that(platform_flavor('Windows'), is_('windows'))
        assert_that(platform_flavor('Darwin'), is_('osx'))
        assert_that(platform_flavor('Linux'), is_('linux'))

    def test_platform_file_overrides_defaults(self):
        self.write('lanproxy.%s.cfg' % platform_flavor(), '[proxy]\npoll_interval = 1.5\n')
        proxy = load_config(config_name, self.directory)['proxy']
        assert_that(proxy['poll_interval'], is_(1.5))

    def test_defaults_only(self):
        config = load_config(config_name, None)
        proxy = config['proxy']
        assert_that(proxy['port'], is_(4446))
        assert_that(proxy['verbosity'], is_('silent'))
        assert_that(proxy['interface'], is_(none()))
        assert_that(proxy['liveness_timeout'], is_(5.0))
        assert_that(proxy['poll_interval'], is_(2.0))
        assert_that(proxy['buffer_size'], is_(8192))

    def test_local_overrides_defaults(self):
        self.write('lanproxy.cfg', '[proxy]\nport = 12345\nverbosity = verbose\ninterface = 192.168.1.2\n')
        proxy = load_config(config_name, self.directory)['proxy']
        assert_that(proxy['port'], is_(12345))
        assert_that(proxy['verbosity'], is_('verbose'))
        assert_that(proxy['interface'], is_('192.168.1.2'))
        assert_that(proxy['poll_interval'], is_(2.0))

    def test_user_file_is_overridden_by_local(self):
        os.mkdir(os.path.join(self.directory, 'home'))
        with open(os.path.join(self.directory, 'home', 'lanproxy.cfg'), 'w') as f:
            f.write('[proxy]\nport = 2000\nbuffer_size = 1024\n')
        self.write('lanproxy.cfg', '[proxy]\nport = 3000\n')
        proxy = load_config(config_name, self.directory)['proxy']
        assert_that(proxy['port'], is_(3000))
        assert_that(proxy['buffer_size'], is_(1024))

    def test_invalid_value_fails_validation(self):
        self.write('lanproxy.cfg', '[proxy]\nport = 99999\n')
        assert_that(calling(load_config).with_args(config_name, self.directory),
                    raises(ConfigObjError, "the config file lanproxy failed validation"))

    def test_invalid_verbosity_fails_validation(self):
        self.write('lanproxy.cfg', '[proxy]\nverbosity = loud\n')
        assert_that(calling(load_config).with_args(config_name, self.directory), raises(ConfigObjError))

    def test_fetch_conf_path(self):
        conf = ConfigObj({'a': {'b': {'c': '1'}}})
        assert_that(fetch_conf_path(conf, ['a', 'b'])['c'], is_('1'))
        assert_that(fetch_conf_path(conf, ['a', 'x']), is_(none()))

    def test_apply_conf_sets_known_attributes_only(self):
        target = ProxyConfig()
        apply_conf({'port': 9, 'unknown': 1}, target)
        assert_that(target.port, is_(9))
        assert_that(hasattr(target, 'unknown'), is_(False))

    def test_load_proxy_config_defaults(self):
        assert_that(load_proxy_config(), is_(equal_to(ProxyConfig())))

    def test_load_proxy_config_from_directory(self):
        self.write('lanproxy.cfg', '[proxy]\nport = 12345\nliveness_timeout = 10\n')
        config = load_proxy_config(self.directory)
        assert_that(config.port, is_(12345))
        assert_that(config.liveness_timeout, is_(10.0))

    def test_overrides_win_unless_none(self):
        self.write('lanproxy.cfg', '[proxy]\nport = 12345\nverbosity = verbose\n')
        config = load_proxy_config(self.directory, port=4000, verbosity=None, interface='10.0.0.1')
        assert_that(config.port, is_(4000))
        assert_that(config.verbosity, is_('verbose'))
        assert_that(config.interface, is_('10.0.0.1'))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
