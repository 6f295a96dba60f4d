from datetime import datetime, timezone
import os
import threading
import time

from .Auth import Auth
from .Backend import BridgeBackend
from .Backend import RestBackend
from .constants import CURRENT_ENV_ENV_VAR
from .constants import DEFAULT_MAX_CONCURRENT
from .constants import TIME_OPERATION_PREFIX
from .Credentials import CredentialCache
from .Database import Database
from .Dispatch import QueuedDispatcher
from .Operations import Operation
from .Operations import OperationIdGenerator
from .RestClient import FirebaseRestClient
from .Settings import FirebaseSettings
from .Transport import HttpTransport
from .TrustedTime import TrustedTimeResolver
from .utils import FirebaseApiException

from firebaserest import GLOBAL_API_KEY
from firebaserest import GLOBAL_PROJECT_ID
from firebaserest import GLOBAL_DATABASE_URL
from firebaserest import GLOBAL_SETTINGS
from firebaserest import _getEnvironmentSettings

from typing import Any, Optional, Callable

# Default function to call with debug messages.
DEFAULT_PRINT_DEBUG_FN: Optional[Callable[[str], None]] = None

def set_default_print_debug_fn( fn: Optional[Callable[[str], None]] = None ):
    """
    Set a default function to call with debug messages.

    Args:
        fn (function): the function to call with debug messages.
    """
    global DEFAULT_PRINT_DEBUG_FN
    DEFAULT_PRINT_DEBUG_FN = fn

# Stored token fields and the credential fields they restore.
_TOKEN_FIELDS = {
    'id_token' : 'idToken',
    'refresh_token' : 'refreshToken',
    'user_id' : 'userId',
    'email' : 'email',
    'display_name' : 'displayName',
    'expires_at' : 'expiresAt',
}


class App( object ):
    '''A configured Firebase project: authentication, database and trusted time.

    Operation callbacks are delivered through the dispatcher. With the default
    dispatcher they run on the thread that created the App when it calls
    pump() or wait().
    '''

    def __init__( self, settings: Optional[FirebaseSettings] = None, environment: Optional[str] = None, print_debug_fn: Optional[Callable[[str], None]] = None, dispatcher: Any = None, bridge_helper: Any = None, session: Any = None, max_concurrent: int = DEFAULT_MAX_CONCURRENT, auto_refresh: bool = True, tokens: Optional[dict] = None ):
        '''Create an App.

        Args:
            settings (FirebaseSettings): project settings, the environment or global settings are used if unset.
            environment (str): an environment name as defined with "firebaserest configure".
            print_debug_fn (function(message)): a callback function that will receive detailed debug messages.
            dispatcher (Dispatcher): where callbacks run, a QueuedDispatcher owned by the calling thread by default.
            bridge_helper (object): native SDK helper, required when settings.use_rest_api is False.
            session (requests.Session): HTTP session to use.
            max_concurrent (int): maximum number of concurrent HTTP requests.
            auto_refresh (bool): refresh an about to expire ID token before database operations.
            tokens (dict): previously stored tokens to resume a session, as returned by storableTokens().
        '''
        self._debug: Optional[Callable[[str], None]] = print_debug_fn or DEFAULT_PRINT_DEBUG_FN

        storedTokens = None
        if settings is None:
            settings, storedTokens = self._resolveSettings( environment )
        if tokens is None:
            tokens = storedTokens
        self._settings = settings

        self._transport = HttpTransport( timeout = settings.request_timeout,
                                         maxConcurrent = max_concurrent,
                                         session = session,
                                         printDebug = self._printDebug )
        self._timeResolver = TrustedTimeResolver( self._transport,
                                                  url = settings.time_service_url,
                                                  timeout = settings.time_timeout,
                                                  printDebug = self._printDebug )
        self._timeIds = OperationIdGenerator( TIME_OPERATION_PREFIX )
        self._dispatcher = dispatcher if dispatcher is not None else QueuedDispatcher( printDebug = self._printDebug )

        self._rest = None
        if settings.use_rest_api:
            self._rest = FirebaseRestClient( settings.api_key,
                                             projectId = settings.project_id,
                                             databaseUrl = settings.get_full_database_url(),
                                             transport = self._transport,
                                             credentials = CredentialCache(),
                                             timeResolver = self._timeResolver,
                                             printDebug = self._printDebug )
            self._backend = RestBackend( self._rest )
            if tokens:
                self.restoreTokens( tokens )
        else:
            self._backend = BridgeBackend( bridge_helper, printDebug = self._printDebug )

        self.auth = Auth( self._backend, self._dispatcher, printDebug = self._printDebug )
        self.database = Database( self._backend, self._dispatcher, auth = self.auth, isAutoRefresh = auto_refresh, printDebug = self._printDebug )
        self._isShutdown = False

    def _resolveSettings( self, environment ):
        if environment is not None:
            section = _getEnvironmentSettings( environment )
            if section is None or not section.get( 'api_key', None ):
                raise FirebaseApiException( 'Firebase environment "%s" not configured, use "firebaserest configure".' % ( environment, ) )
            return FirebaseSettings.fromDict( section ), section.get( 'tokens', None )

        if GLOBAL_API_KEY is None:
            raise FirebaseApiException( 'Firebase "default" environment not set, please use "firebaserest configure" or set FIREBASE_API_KEY.' )
        settings = FirebaseSettings.fromDict( GLOBAL_SETTINGS )
        settings.api_key = GLOBAL_API_KEY
        if GLOBAL_PROJECT_ID is not None:
            settings.project_id = GLOBAL_PROJECT_ID
        if GLOBAL_DATABASE_URL is not None:
            settings.database_url = GLOBAL_DATABASE_URL
        return settings, ( GLOBAL_SETTINGS or {} ).get( 'tokens', None )

    def _printDebug( self, msg ):
        if self._debug is not None:
            time_string = datetime.now( timezone.utc ).strftime( "%Y-%m-%d %H:%M:%SZ" )
            self._debug( f"{time_string}: {msg}" )

    @property
    def settings( self ):
        return self._settings

    @property
    def backend( self ):
        return self._backend

    @property
    def rest( self ):
        '''The REST client, None when running over a native bridge.'''
        return self._rest

    @property
    def dispatcher( self ):
        return self._dispatcher

    # Tokens.

    def restoreTokens( self, tokens ):
        '''Seed the credential cache from stored tokens.'''
        if self._rest is None:
            raise FirebaseApiException( 'stored tokens can only be restored with the REST backend' )
        self._rest.credentials.set( **{ field : tokens[ k ] for k, field in _TOKEN_FIELDS.items() if tokens.get( k, None ) is not None } )

    def storableTokens( self ):
        '''Current credentials in the format accepted by restoreTokens(), None if signed out.'''
        creds = self._backend.currentUser()
        if not creds.isSignedIn:
            return None
        return { k : getattr( creds, field ) for k, field in _TOKEN_FIELDS.items() }

    # Time.

    def get_trusted_time( self, callback = None ):
        '''Get the current time from the trusted time service.

        Calls callback( TimeResult ) through the dispatcher. The result is
        always a success, its trust tells whether the local clock was used.

        Returns:
            the operation id.
        '''
        def _continuation( result ):
            if callback is not None:
                self._dispatcher.post( callback, result )

        op = Operation( self._timeIds.next(), _continuation, printDebug = self._printDebug ).start()
        self._timeResolver.resolve( op.resolve )
        return op.id

    # Callbacks.

    def pump( self, timeout = 0 ):
        '''Run the callbacks of completed operations on the calling thread.

        Args:
            timeout (float): seconds to wait for a completion if none is ready.

        Returns:
            number of callbacks run.
        '''
        return self._dispatcher.pump( timeout = timeout )

    def wait( self, issue, timeout = None ):
        '''Start one operation and run callbacks until its result arrives.

        Args:
            issue (function(callback)): starts the operation with the given callback, ex: lambda cb: app.database.get_value( 'users', cb ).
            timeout (float): maximum number of seconds to wait, forever if None.

        Returns:
            the operation's result, or None on timeout.
        '''
        results = []
        isDone = threading.Event()

        def _onResult( result ):
            results.append( result )
            isDone.set()

        issue( _onResult )

        deadline = None if timeout is None else time.monotonic() + timeout
        while not isDone.is_set():
            step = 0.1
            if deadline is not None:
                step = min( step, deadline - time.monotonic() )
                if step <= 0:
                    return None
            if self._dispatcher.pump( timeout = step ) == 0:
                isDone.wait( step )
        return results[ 0 ]

    def shutdown( self, wait = True ):
        if self._isShutdown:
            return
        self._isShutdown = True
        self._backend.close()
        self._transport.close( wait = wait )

    def __enter__( self ):
        return self

    def __exit__( self, exc_type, exc_val, exc_tb ):
        self.shutdown()
        return False


def getCurrentEnvironment():
    env = os.environ.get( CURRENT_ENV_ENV_VAR, 'default' )
    return env or 'default'
