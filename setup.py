from setuptools import setup

__version__ = "1.2.0"
__author__ = "Maxime Lamothe-Brassard ( Refraction Point, Inc )"
__author_email__ = "maxime@refractionpoint.com"
__license__ = "Apache v2"
__copyright__ = "Copyright (c) 2020 Refraction Point, Inc"

setup( name = 'loopback-oauth',
       version = __version__,
       description = 'Loopback redirect capture for desktop OAuth authorization-code flows',
       url = 'https://limacharlie.io',
       author = __author__,
       author_email = __author_email__,
       license = __license__,
       packages = [ 'loopback_oauth' ],
       zip_safe = True,
       python_requires = '>=3.8',
       install_requires = [ 'pyyaml', 'orjson', 'termcolor', 'pygments', 'rich' ],
       extras_require = {
           'test': [ 'pytest' ],
       },
       long_description = 'Transient loopback HTTP listener that captures the authorization redirect of a browser based OAuth flow.',
       entry_points = {
           'console_scripts': [
               'loopback-oauth=loopback_oauth.__main__:main',
           ],
       },
)
