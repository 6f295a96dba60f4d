import os

# Path to the configuration file. Can be overriden for tests.
CONFIG_FILE_PATH = os.path.expanduser( '~/.firebaserest' )

# Environment variables consulted for the global settings.
API_KEY_ENV_VAR = 'FIREBASE_API_KEY'
PROJECT_ID_ENV_VAR = 'FIREBASE_PROJECT_ID'
DATABASE_URL_ENV_VAR = 'FIREBASE_DATABASE_URL'
CREDS_FILE_ENV_VAR = 'FIREBASE_CREDS_FILE'
CURRENT_ENV_ENV_VAR = 'FIREBASE_CURRENT_ENV'

# Ephemeral mode - when set, settings and tokens are never read from or written
# to the configuration file, everything must come from the environment.
EPHEMERAL_CREDS_ENV_VAR = 'FIREBASE_EPHEMERAL_CREDS'

# Identity Toolkit / Secure Token endpoints.
_IDENTITY_BASE = 'https://identitytoolkit.googleapis.com/v1'
AUTH_SIGNUP_ENDPOINT = f'{_IDENTITY_BASE}/accounts:signUp'
AUTH_SIGNIN_ENDPOINT = f'{_IDENTITY_BASE}/accounts:signInWithPassword'
AUTH_REFRESH_ENDPOINT = 'https://securetoken.googleapis.com/v1/token'
AUTH_RESET_PASSWORD_ENDPOINT = f'{_IDENTITY_BASE}/accounts:sendOobCode'
AUTH_UPDATE_ENDPOINT = f'{_IDENTITY_BASE}/accounts:update'
AUTH_DELETE_ENDPOINT = f'{_IDENTITY_BASE}/accounts:delete'
AUTH_GET_USER_ENDPOINT = f'{_IDENTITY_BASE}/accounts:lookup'
AUTH_SEND_VERIFICATION_ENDPOINT = f'{_IDENTITY_BASE}/accounts:sendOobCode'

# Trusted time service, answers with "unixtime" (and a lowercase "datetime").
TIME_SERVICE_URL = 'https://worldtimeapi.org/api/timezone/Etc/UTC'

# Timeouts in seconds.
DEFAULT_REQUEST_TIMEOUT = 15
DEFAULT_TIME_TIMEOUT = 5

# Upper bound on concurrently running HTTP requests.
DEFAULT_MAX_CONCURRENT = 16

# Refresh the ID token this many seconds before it expires.
TOKEN_REFRESH_BUFFER = 300

# Message carried by results when no HTTP response was received.
NETWORK_ERROR = 'Network error'

# Message carried by results for operations only the native SDK provides.
PLATFORM_NOT_SUPPORTED = 'Platform not supported'

# Operation id prefixes.
AUTH_OPERATION_PREFIX = 'AUTH'
DATABASE_OPERATION_PREFIX = 'DB'
TIME_OPERATION_PREFIX = 'TIME'
