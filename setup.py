from setuptools import setup

__version__ = "1.0.0"
__license__ = "Apache v2"

setup( name = 'firebaserest',
       version = __version__,
       description = 'Python client for Firebase Authentication and Realtime Database over REST',
       license = __license__,
       packages = [ 'firebaserest' ],
       zip_safe = True,
       install_requires = [ 'requests', 'pyyaml', 'orjson', 'tabulate', 'termcolor', 'pygments', 'rich' ],
       extras_require = {
           'test': [ 'pytest' ],
       },
       long_description = 'Python client for Firebase Authentication and the Realtime Database REST API, with trusted time and a command line interface.',
       entry_points = {
           'console_scripts': [
               'firebaserest=firebaserest.__main__:main',
           ],
       },
)
