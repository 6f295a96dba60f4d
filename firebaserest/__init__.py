"""firebaserest, Firebase Authentication and Realtime Database over REST"""

__version__ = "1.0.0"
__license__ = "Apache v2"

# Global Firebase settings
import os

from .utils import loadConfig

def _getEnvironmentSettings( name ):
    conf = loadConfig( os.environ.get( 'FIREBASE_CREDS_FILE', None ) ) or {}

    if name == 'default':
        # Default settings are at the top of the file.
        return { k : v for k, v in conf.items() if k != 'env' }

    return conf.get( 'env', {} ).get( name, None )

# Global settings are acquired in the following order:
# 1- FIREBASE_API_KEY, FIREBASE_PROJECT_ID and FIREBASE_DATABASE_URL environment variables.
# 2- FIREBASE_CREDS_FILE environment variable points to a YAML file with "api_key: <KEY>", "project_id: <ID>"...
# 3- Assumes a settings file (like #2) is present at "~/.firebaserest".
GLOBAL_API_KEY = os.environ.get( 'FIREBASE_API_KEY', None )
GLOBAL_PROJECT_ID = os.environ.get( 'FIREBASE_PROJECT_ID', None )
GLOBAL_DATABASE_URL = os.environ.get( 'FIREBASE_DATABASE_URL', None )
GLOBAL_SETTINGS = {}
if GLOBAL_API_KEY is None:
    _fbEnv = os.environ.get( 'FIREBASE_CURRENT_ENV', 'default' )
    if _fbEnv == '':
        _fbEnv = 'default'
    GLOBAL_SETTINGS = _getEnvironmentSettings( _fbEnv ) or {}
    GLOBAL_API_KEY = GLOBAL_SETTINGS.get( 'api_key', None )
    if GLOBAL_PROJECT_ID is None:
        GLOBAL_PROJECT_ID = GLOBAL_SETTINGS.get( 'project_id', None )
    if GLOBAL_DATABASE_URL is None:
        GLOBAL_DATABASE_URL = GLOBAL_SETTINGS.get( 'database_url', None )

from .App import App
from .App import set_default_print_debug_fn
from .Auth import Auth
from .Database import Database
from .Settings import FirebaseSettings
from .Settings import DatabaseRegion
from .RestClient import FirebaseRestClient
from .RestClient import Query
from .Results import AuthResult
from .Results import DatabaseResult
from .Results import TimeResult
from .Results import TimeTrust
from .Backend import RestBackend
from .Backend import BridgeBackend
from .Dispatch import QueuedDispatcher
from .Dispatch import InlineDispatcher
from .TrustedTime import TrustedTimeResolver
from .utils import FirebaseApiException
