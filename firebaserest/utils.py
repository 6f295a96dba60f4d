import os
import yaml
import tempfile
import stat
import shutil

from .constants import CONFIG_FILE_PATH, EPHEMERAL_CREDS_ENV_VAR


class FirebaseApiException ( Exception ):
    '''Exception type used for configuration and usage errors in the SDK.

    Failed backend operations never raise, they are reported through the result
    passed to the operation's callback.
    '''

    def __init__(self, message, code=None):
        """
        Initialize the exception with a message and an optional status code.

        Args:
            message (str): The error message.
            code (int, optional): An optional HTTP status code. Defaults to None.
        """
        super().__init__(message)
        self.code = code


GET = 'GET'
POST = 'POST'
DELETE = 'DELETE'
PUT = 'PUT'
PATCH = 'PATCH'


def loadConfig( path = None ):
    """
    Load settings and tokens from the config file.

    Args:
        path (str): file to read, the default config file if None.

    Returns:
        dict: Loaded configuration or None if the file doesn't exist
    """
    # If ephemeral credentials mode is enabled, skip disk operations entirely
    if os.environ.get( EPHEMERAL_CREDS_ENV_VAR ):
        return None

    try:
        with open(path or CONFIG_FILE_PATH, 'rb') as f:
            return yaml.safe_load(f.read())
    except FileNotFoundError:
        return None

def writeSettingsToConfig( environment, settings = None, tokens = None, clearTokens = False ):
    """
    Securely write settings and tokens to the config file on disk.

    Args:
        environment (str): environment name, "default" or None for the top level.
        settings (dict): project settings (api_key, project_id, database_url...).
        tokens (dict): refresh token and user identity to remember.
        clearTokens (bool): remove stored tokens for this environment.
    """
    # If ephemeral credentials mode is enabled, skip disk operations entirely
    if os.environ.get( EPHEMERAL_CREDS_ENV_VAR ):
        print( "Ephemeral credentials mode enabled - settings will not be persisted to disk" )
        return

    conf = {}
    try:
        with open( CONFIG_FILE_PATH, 'rb' ) as f:
            conf = yaml.safe_load( f.read() )
    except FileNotFoundError:
        pass

    # Handle scenario where a file is empty
    conf = conf or {}

    if environment == 'default' or environment is None:
        target = conf
    else:
        conf.setdefault( 'env', {} )
        target = conf[ 'env' ].setdefault( environment, {} )

    for k, v in ( settings or {} ).items():
        if v is not None and v != '':
            target[ k ] = v
    if clearTokens:
        target.pop( 'tokens', None )
    elif tokens is not None:
        target[ 'tokens' ] = tokens

    content = yaml.safe_dump( conf, default_flow_style = False ).encode()

    # Write to a private temporary file first and move it in place, so the
    # file is never readable by others while being written.
    fd, tmp_path = tempfile.mkstemp()
    os.chmod( tmp_path, stat.S_IWUSR | stat.S_IRUSR )  # 0o600

    try:
        try:
            os.write(fd, content)
        finally:
            os.close(fd)

        shutil.move(tmp_path, CONFIG_FILE_PATH)
    finally:
        if os.path.isfile(tmp_path):
            os.unlink(tmp_path)
