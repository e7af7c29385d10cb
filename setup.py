"""
Packaging for the LAN world proxy.

The tests live beside the modules they test (``*_test.py``) and are run with pytest:
``pip install -e .[test]`` then ``pytest src``.
"""

from setuptools import setup


setup(
    name='mclanproxy',
    version='0.1.0',
    description='Proxy server enabling remote access to Minecraft LAN worlds.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['mclanproxy', 'mclanproxy.config', 'mclanproxy.connector', 'mclanproxy.discovery',
              'mclanproxy.relay', 'mclanproxy.support'],
    package_data={'mclanproxy.config': ['*.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=2.0',
            'pytest',
            'timeout-decorator',
        ],
    },
    entry_points={
        'console_scripts': [
            'mclanproxy = mclanproxy.main:main',
        ],
    },
    zip_safe=False,
)
