import threading

from . import json_utils
from .constants import AUTH_OPERATION_PREFIX
from .Operations import Operation
from .Operations import OperationIdGenerator
from .Results import AuthResult

NO_REFRESH_TOKEN = 'No refresh token available'


class Auth( object ):
    '''User authentication.

    Every operation returns its operation id immediately and later calls
    callback( AuthResult ) through the dispatcher. Operation failures are
    reported in the result, never raised.
    '''

    def __init__( self, backend, dispatcher, printDebug = None ):
        '''Create the facade.

        Args:
            backend (Backend): transport executing the operations.
            dispatcher (Dispatcher): decides where callbacks run.
            printDebug (function(message)): receives debug messages.
        '''
        self._backend = backend
        self._dispatcher = dispatcher
        self._printDebug = printDebug
        self._ids = OperationIdGenerator( AUTH_OPERATION_PREFIX )
        self._lock = threading.Lock()
        self._isEmailVerified = False
        self._refreshWaiters = None

    def _newOperation( self, callback, onResult = None ):
        # onResult runs on the completing thread, before the user callback
        # is handed to the dispatcher.
        def _continuation( result ):
            if onResult is not None:
                onResult( result )
            if callback is not None:
                self._dispatcher.post( callback, result )

        return Operation( self._ids.next(), _continuation, printDebug = self._printDebug )

    def _issue( self, operation, params, callback, onResult = None ):
        op = self._newOperation( callback, onResult )
        self._backend.auth( op, operation, params )
        return op.id

    def _fail( self, callback, errorMessage ):
        op = self._newOperation( callback )
        op.start().resolve( AuthResult( success = False, errorMessage = errorMessage ) )
        return op.id

    def _withToken( self, params = None ):
        params = dict( params or {} )
        params[ 'idToken' ] = self._backend.currentUser().idToken
        return params

    # Sign in / out.

    def sign_up_with_email( self, email, password, callback = None ):
        return self._issue( 'signUpWithEmail', { 'email' : email, 'password' : password }, callback )

    def sign_in_with_email( self, email, password, callback = None ):
        return self._issue( 'signInWithEmail', { 'email' : email, 'password' : password }, callback )

    def sign_in_anonymously( self, callback = None ):
        return self._issue( 'signInAnonymously', {}, callback )

    def sign_in_with_google( self, callback = None ):
        '''Google sign-in, only available with the native SDK.'''
        return self._issue( 'signInWithGoogle', {}, callback )

    def sign_out( self ):
        '''Forget the current user. Nothing is sent to the backend.'''
        self._backend.signOut()
        with self._lock:
            self._isEmailVerified = False

    # Current user.

    def is_user_signed_in( self ):
        return self._backend.currentUser().isSignedIn

    def get_current_user_id( self ):
        return self._backend.currentUser().userId

    def get_current_user_email( self ):
        return self._backend.currentUser().email

    def get_current_user_display_name( self ):
        return self._backend.currentUser().displayName

    def get_auth_token( self ):
        return self._backend.currentUser().idToken

    def is_email_verified( self ):
        '''Verification status as of the last get_user_data().'''
        with self._lock:
            return self._isEmailVerified

    # Account management.

    def send_email_verification( self, callback = None ):
        return self._issue( 'sendEmailVerification', self._withToken(), callback )

    def send_password_reset_email( self, email, callback = None ):
        return self._issue( 'sendPasswordResetEmail', { 'email' : email }, callback )

    def update_password( self, newPassword, callback = None ):
        return self._issue( 'updatePassword', self._withToken( { 'password' : newPassword } ), callback )

    def update_email( self, newEmail, callback = None ):
        return self._issue( 'updateEmail', self._withToken( { 'email' : newEmail } ), callback )

    def update_display_name( self, displayName, callback = None ):
        return self.update_profile( displayName = displayName, callback = callback )

    def update_profile( self, displayName = '', photoUrl = '', callback = None ):
        return self._issue( 'updateProfile', self._withToken( {
            'displayName' : displayName,
            'photoUrl' : photoUrl,
        } ), callback )

    def delete_user_account( self, callback = None ):
        def _onResult( result ):
            if result.success:
                self.sign_out()

        return self._issue( 'deleteAccount', self._withToken(), callback, onResult = _onResult )

    def get_user_data( self, callback = None ):
        '''Look up the current user's account, updates is_email_verified().'''
        def _onResult( result ):
            if not result.success:
                return
            data = json_utils.try_loads( result.data )
            users = data.get( 'users', None ) if isinstance( data, dict ) else None
            if isinstance( users, list ) and users and isinstance( users[ 0 ], dict ):
                with self._lock:
                    self._isEmailVerified = bool( users[ 0 ].get( 'emailVerified', False ) )

        return self._issue( 'getUserData', self._withToken(), callback, onResult = _onResult )

    # Tokens.

    def refresh_token( self, callback = None ):
        '''Exchange the cached refresh token for a new ID token.'''
        refreshToken = self._backend.currentUser().refreshToken
        if not refreshToken:
            return self._fail( callback, NO_REFRESH_TOKEN )
        return self._issue( 'refreshIdToken', { 'refreshToken' : refreshToken }, callback )

    def needs_token_refresh( self ):
        return self._backend.needsTokenRefresh()

    def ensure_fresh_token( self, then ):
        '''Call then() once the cached ID token can be used.

        When the token is about to expire it is refreshed first. Concurrent
        callers share a single refresh request. then() is called whether or not
        the refresh succeeded, on the thread that completed it, and is not
        marshaled through the dispatcher.
        '''
        if not self._backend.needsTokenRefresh():
            then()
            return

        with self._lock:
            if self._refreshWaiters is not None:
                self._refreshWaiters.append( then )
                return
            self._refreshWaiters = [ then ]

        def _onRefreshed( result ):
            if not result.success and self._printDebug is not None:
                self._printDebug( 'token refresh failed: %s' % ( result.errorMessage, ) )
            with self._lock:
                waiters = self._refreshWaiters
                self._refreshWaiters = None
            for waiter in waiters:
                waiter()

        refreshToken = self._backend.currentUser().refreshToken
        self._issue( 'refreshIdToken', { 'refreshToken' : refreshToken }, None, onResult = _onRefreshed )
