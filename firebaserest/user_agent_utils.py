"""
User-Agent string sent with every HTTP request.

Format: "<prefix>/<version>;python-X.Y.Z;<os>", ex:
"firebaserest-py/1.0.0;python-3.11.2;linux"
"""

import sys
import platform


def _python_version():
    return 'python-%d.%d.%d' % (sys.version_info.major, sys.version_info.minor, sys.version_info.micro)


def _os_name():
    name = platform.system().lower()
    if name == 'darwin':
        return 'macos-%s' % (platform.mac_ver()[0] or 'unknown',)
    if name == 'windows':
        return 'windows-%s' % (platform.release() or 'unknown',)
    return name or 'unknown'


def build_user_agent(library_prefix, library_version):
    """
    Build the User-Agent string.

    Parameters:
        library_prefix (str): library identifier, ex: "firebaserest-py".
        library_version (str): library version.

    Returns:
        str: semicolon separated User-Agent.
    """
    return ';'.join(['%s/%s' % (library_prefix, library_version), _python_version(), _os_name()])
