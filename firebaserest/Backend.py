from . import json_utils
from .constants import PLATFORM_NOT_SUPPORTED
from .Credentials import Credentials
from .Operations import PendingOperations
from .Results import AuthResult
from .Results import DatabaseResult
from .utils import FirebaseApiException

# Operation names understood by every backend.
AUTH_OPERATIONS = (
    'signUpWithEmail',
    'signInWithEmail',
    'signInAnonymously',
    'signInWithGoogle',
    'refreshIdToken',
    'sendPasswordResetEmail',
    'updateEmail',
    'updatePassword',
    'updateProfile',
    'sendEmailVerification',
    'deleteAccount',
    'getUserData',
)

DATABASE_OPERATIONS = (
    'setValue',
    'updateValue',
    'pushValue',
    'deleteValue',
    'getValue',
    'query',
)


class Backend( object ):
    '''Capability interface implemented by every transport.

    auth() and database() start an operation and later resolve the given
    Operation with an AuthResult or DatabaseResult, from any thread. Callers
    never need to know which transport executed a call.
    '''

    name = None

    def auth( self, op, operation, params ):
        raise NotImplementedError()

    def database( self, op, operation, path, params ):
        raise NotImplementedError()

    def currentUser( self ):
        '''Credentials of the signed in user, empty Credentials if none.'''
        raise NotImplementedError()

    def signOut( self ):
        raise NotImplementedError()

    def needsTokenRefresh( self ):
        return False

    def listen( self, path ):
        pass

    def stopListening( self, path ):
        pass

    def setValueChangedHandler( self, handler ):
        pass

    def close( self ):
        pass


def _unsupported( op, resultClass, **fields ):
    op.resolve( resultClass( success = False, errorMessage = PLATFORM_NOT_SUPPORTED, **fields ) )


class RestBackend( Backend ):
    '''Backend executing operations with the REST client.

    Each operation is resolved from the completion of its own HTTP request, the
    Operation being captured by that request's closure.
    '''

    name = 'rest'

    def __init__( self, restClient ):
        self._rest = restClient

    @property
    def rest( self ):
        return self._rest

    @property
    def credentials( self ):
        return self._rest.credentials

    def currentUser( self ):
        return self._rest.credentials.snapshot()

    def signOut( self ):
        self._rest.clearTokens()

    def needsTokenRefresh( self ):
        return self._rest.credentials.needsRefresh()

    def close( self ):
        self._rest.close()

    def auth( self, op, operation, params ):
        op.start()
        onDone = lambda success, response: op.resolve( self._toAuthResult( success, response ) )
        idToken = params.get( 'idToken', '' )

        if operation == 'signUpWithEmail':
            self._rest.signUpWithEmail( params[ 'email' ], params[ 'password' ], onDone )
        elif operation == 'signInWithEmail':
            self._rest.signInWithEmail( params[ 'email' ], params[ 'password' ], onDone )
        elif operation == 'signInAnonymously':
            self._rest.signInAnonymously( onDone )
        elif operation == 'refreshIdToken':
            self._rest.refreshIdToken( params[ 'refreshToken' ], onDone )
        elif operation == 'sendPasswordResetEmail':
            self._rest.sendPasswordResetEmail( params[ 'email' ], onDone )
        elif operation == 'updateEmail':
            self._rest.updateEmail( idToken, params[ 'email' ], onDone )
        elif operation == 'updatePassword':
            self._rest.updatePassword( idToken, params[ 'password' ], onDone )
        elif operation == 'updateProfile':
            self._rest.updateProfile( idToken, params.get( 'displayName', '' ), params.get( 'photoUrl', '' ), onDone )
        elif operation == 'sendEmailVerification':
            self._rest.sendEmailVerification( idToken, onDone )
        elif operation == 'deleteAccount':
            self._rest.deleteAccount( idToken, onDone )
        elif operation == 'getUserData':
            self._rest.getUserData( idToken, onDone )
        elif operation in AUTH_OPERATIONS:
            # Only available through the native SDK.
            _unsupported( op, AuthResult )
        else:
            raise FirebaseApiException( 'unknown auth operation: %s' % ( operation, ) )

    def _toAuthResult( self, success, response ):
        if not success:
            return AuthResult( success = False, data = response, errorMessage = response )

        # Missing fields are taken from the cache, which already holds
        # whatever this response contained.
        info = json_utils.try_loads( response )
        if isinstance( info, dict ) and isinstance( info.get( 'users', None ), list ) and info[ 'users' ]:
            info = info[ 'users' ][ 0 ]
        if not isinstance( info, dict ):
            info = {}
        creds = self._rest.credentials.snapshot()
        return AuthResult( success = True,
                           data = response,
                           userId = info.get( 'localId', info.get( 'user_id', creds.userId ) ),
                           email = info.get( 'email', creds.email ),
                           displayName = info.get( 'displayName', creds.displayName ),
                           authToken = info.get( 'idToken', info.get( 'id_token', creds.idToken ) ),
                           refreshToken = info.get( 'refreshToken', info.get( 'refresh_token', creds.refreshToken ) ) )

    def database( self, op, operation, path, params ):
        op.start()
        onDone = lambda success, response: op.resolve( DatabaseResult( success = success,
                                                                       data = response,
                                                                       errorMessage = '' if success else response,
                                                                       path = path ) )
        # The token is read when the request is built, so a refresh that
        # completed before this point is used.
        authToken = self._rest.credentials.idToken

        if operation == 'setValue':
            self._rest.setValue( path, params[ 'data' ], authToken, onDone )
        elif operation == 'updateValue':
            self._rest.updateValue( path, params[ 'data' ], authToken, onDone )
        elif operation == 'pushValue':
            self._rest.pushValue( path, params[ 'data' ], authToken, onDone )
        elif operation == 'deleteValue':
            self._rest.deleteValue( path, authToken, onDone )
        elif operation == 'getValue':
            self._rest.getValue( path, authToken, onDone )
        elif operation == 'query':
            self._rest.query( path, params[ 'query' ], authToken, onDone )
        else:
            raise FirebaseApiException( 'unknown database operation: %s' % ( operation, ) )


class BridgeBackend( Backend ):
    '''Backend forwarding operations to a native SDK helper supplied by the host.

    The helper exposes the native methods (signInWithEmail( email, password,
    operationId ), setDatabaseValue( path, data, operationId )...) and reports
    completions by calling onAuthResult(), onDatabaseResult() and
    onDatabaseValueChanged() on this object, from any thread. The operation id
    travels with the call and comes back with the event, so every event
    resolves exactly the operation that requested it.
    '''

    name = 'bridge'

    _AUTH_CALLS = {
        'signUpWithEmail' : ( 'signUpWithEmail', ( 'email', 'password' ) ),
        'signInWithEmail' : ( 'signInWithEmail', ( 'email', 'password' ) ),
        'signInAnonymously' : ( 'signInAnonymously', () ),
        'signInWithGoogle' : ( 'signInWithGoogle', () ),
        'sendEmailVerification' : ( 'sendEmailVerification', () ),
        'sendPasswordResetEmail' : ( 'sendPasswordResetEmail', ( 'email', ) ),
        'updatePassword' : ( 'updatePassword', ( 'password', ) ),
        'updateProfile' : ( 'updateDisplayName', ( 'displayName', ) ),
        'deleteAccount' : ( 'deleteUserAccount', () ),
    }

    _DATABASE_CALLS = {
        'setValue' : ( 'setDatabaseValue', True ),
        'updateValue' : ( 'updateDatabaseValue', True ),
        'pushValue' : ( 'pushDatabaseValue', True ),
        'deleteValue' : ( 'deleteDatabaseValue', False ),
        'getValue' : ( 'getDatabaseValue', False ),
    }

    def __init__( self, helper, printDebug = None ):
        if helper is None:
            raise FirebaseApiException( 'the native bridge requires a helper object' )
        self._helper = helper
        self._printDebug = printDebug
        self._pending = PendingOperations( printDebug = printDebug )
        self._valueChangedHandler = None

    @property
    def pending( self ):
        return self._pending

    def currentUser( self ):
        if not self._helper.isUserSignedIn():
            return Credentials()
        return Credentials( idToken = self._helper.getAuthToken() or '',
                            userId = self._helper.getCurrentUserId() or '',
                            email = self._helper.getCurrentUserEmail() or '',
                            displayName = self._helper.getCurrentUserDisplayName() or '' )

    def signOut( self ):
        self._helper.signOut()

    def auth( self, op, operation, params ):
        if operation not in self._AUTH_CALLS:
            if operation not in AUTH_OPERATIONS:
                raise FirebaseApiException( 'unknown auth operation: %s' % ( operation, ) )
            _unsupported( op, AuthResult )
            return
        method, argNames = self._AUTH_CALLS[ operation ]
        self._pending.register( op )
        getattr( self._helper, method )( *( [ params[ n ] for n in argNames ] + [ op.id ] ) )

    def database( self, op, operation, path, params ):
        if operation == 'query':
            query = params[ 'query' ]
            if query.limitToLast is not None or query.equalTo is not None:
                _unsupported( op, DatabaseResult, path = path )
                return
            self._pending.register( op )
            self._helper.queryDatabaseValues( path,
                                              query.orderBy or '',
                                              int( query.limitToFirst or 0 ),
                                              query.startAt or '',
                                              query.endAt or '',
                                              op.id )
            return
        if operation not in self._DATABASE_CALLS:
            raise FirebaseApiException( 'unknown database operation: %s' % ( operation, ) )
        method, isWithData = self._DATABASE_CALLS[ operation ]
        self._pending.register( op )
        if isWithData:
            getattr( self._helper, method )( path, params[ 'data' ], op.id )
        else:
            getattr( self._helper, method )( path, op.id )

    def listen( self, path ):
        self._helper.listenForValueChanges( path )

    def stopListening( self, path ):
        self._helper.stopListening( path )

    def setValueChangedHandler( self, handler ):
        self._valueChangedHandler = handler

    # Inbound events from the native side.

    def onAuthResult( self, operationId, success, userId = '', email = '', displayName = '', errorMessage = '', authToken = '' ):
        return self._pending.resolve( operationId, AuthResult( success = bool( success ),
                                                               errorMessage = errorMessage,
                                                               userId = userId,
                                                               email = email,
                                                               displayName = displayName,
                                                               authToken = authToken ) )

    def onDatabaseResult( self, operationId, success, path = '', data = '', errorMessage = '' ):
        return self._pending.resolve( operationId, DatabaseResult( success = bool( success ),
                                                                   data = data,
                                                                   errorMessage = errorMessage,
                                                                   path = path ) )

    def onDatabaseValueChanged( self, path, data ):
        if self._valueChangedHandler is not None:
            self._valueChangedHandler( path, data )
