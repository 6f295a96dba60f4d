from urllib.parse import quote as urlescape

from . import json_utils
from .constants import AUTH_SIGNUP_ENDPOINT
from .constants import AUTH_SIGNIN_ENDPOINT
from .constants import AUTH_REFRESH_ENDPOINT
from .constants import AUTH_RESET_PASSWORD_ENDPOINT
from .constants import AUTH_UPDATE_ENDPOINT
from .constants import AUTH_DELETE_ENDPOINT
from .constants import AUTH_GET_USER_ENDPOINT
from .constants import AUTH_SEND_VERIFICATION_ENDPOINT
from .constants import NETWORK_ERROR
from .Credentials import CredentialCache
from .Transport import HttpTransport
from .TrustedTime import TrustedTimeResolver
from .utils import FirebaseApiException
from .utils import GET
from .utils import POST
from .utils import PUT
from .utils import PATCH
from .utils import DELETE

_JSON_HEADERS = { 'Content-Type' : 'application/json' }


class Query( object ):
    '''Ordering and filtering parameters of a database read.

    Every filter is optional and they can be combined, ex:
        Query( orderBy = 'score', startAt = '100', limitToFirst = 10 )

    orderBy, startAt, endAt and equalTo are sent as JSON strings, the limits as integers.
    Numeric ranges are not expressible, startAt = 5 is sent as "5".
    '''

    def __init__( self, orderBy = None, limitToFirst = None, limitToLast = None, startAt = None, endAt = None, equalTo = None ):
        self.orderBy = orderBy
        self.limitToFirst = limitToFirst
        self.limitToLast = limitToLast
        self.startAt = startAt
        self.endAt = endAt
        self.equalTo = equalTo

    def toParams( self ):
        '''Query parameters as an ordered list of ( name, value ) tuples.'''
        params = []
        if self.orderBy is not None:
            params.append( ( 'orderBy', '"%s"' % ( self.orderBy, ) ) )
        if self.limitToFirst is not None:
            params.append( ( 'limitToFirst', str( int( self.limitToFirst ) ) ) )
        if self.limitToLast is not None:
            params.append( ( 'limitToLast', str( int( self.limitToLast ) ) ) )
        if self.startAt is not None:
            params.append( ( 'startAt', '"%s"' % ( self.startAt, ) ) )
        if self.endAt is not None:
            params.append( ( 'endAt', '"%s"' % ( self.endAt, ) ) )
        if self.equalTo is not None:
            params.append( ( 'equalTo', '"%s"' % ( self.equalTo, ) ) )
        return params

    def __repr__( self ):
        return 'Query(%s)' % ( ', '.join( '%s=%r' % ( k, v ) for k, v in self.toParams() ), )


def httpErrorMessage( resp ):
    '''Error text of a completed non-2xx response, the raw body or "HTTP <status>" when empty.'''
    return resp.body if resp.body else 'HTTP %d' % ( resp.statusCode, )


def normalizePath( path ):
    '''Database path with exactly one leading slash, ex: "users/bob" -> "/users/bob".'''
    return '/' + ( path or '' ).lstrip( '/' )


class FirebaseRestClient( object ):
    '''REST client for Firebase Authentication and the Realtime Database.

    Every operation is asynchronous: it returns immediately and later calls
    callback( success, response ) from a transport worker thread, where
    response is the raw response body, or "Network error" if no response was
    received. Successful authentication responses update the credential cache.
    '''

    def __init__( self, apiKey, projectId = '', databaseUrl = '', transport = None, credentials = None, timeResolver = None, printDebug = None ):
        '''Create a REST client.

        Args:
            apiKey (str): the Firebase web API key.
            projectId (str): the Firebase project ID.
            databaseUrl (str): base URL of the Realtime Database, ex: "https://my-project-default-rtdb.firebaseio.com".
            transport (HttpTransport): transport to use, one is created (and owned) otherwise.
            credentials (CredentialCache): cache to update with auth responses, one is created otherwise.
            timeResolver (TrustedTimeResolver): resolver for getTrustedServerTime().
            printDebug (function(message)): receives debug messages.
        '''
        if not apiKey:
            raise FirebaseApiException( 'A Firebase API key is required.' )
        self._apiKey = apiKey
        self._projectId = projectId
        self._databaseUrl = ( databaseUrl or '' ).rstrip( '/' )
        self._printDebug = printDebug
        self._isOwnTransport = transport is None
        self._transport = transport if transport is not None else HttpTransport( printDebug = printDebug )
        self.credentials = credentials if credentials is not None else CredentialCache()
        self._timeResolver = timeResolver if timeResolver is not None else TrustedTimeResolver( self._transport, printDebug = printDebug )

    @property
    def projectId( self ):
        return self._projectId

    @property
    def databaseUrl( self ):
        return self._databaseUrl

    @property
    def transport( self ):
        return self._transport

    def _debug( self, msg ):
        if self._printDebug is not None:
            self._printDebug( msg )

    def close( self ):
        if self._isOwnTransport:
            self._transport.close()

    # Cached credentials.

    def getIdToken( self ):
        return self.credentials.idToken

    def getRefreshToken( self ):
        return self.credentials.refreshToken

    def getUserId( self ):
        return self.credentials.userId

    def getEmail( self ):
        return self.credentials.email

    def isSignedIn( self ):
        return self.credentials.isSignedIn

    def clearTokens( self ):
        self.credentials.clear()

    # Authentication.

    def signUpWithEmail( self, email, password, callback ):
        self._sendAuthRequest( AUTH_SIGNUP_ENDPOINT, {
            'email' : email,
            'password' : password,
            'returnSecureToken' : True,
        }, callback, isCacheTokens = True )

    def signInWithEmail( self, email, password, callback ):
        self._sendAuthRequest( AUTH_SIGNIN_ENDPOINT, {
            'email' : email,
            'password' : password,
            'returnSecureToken' : True,
        }, callback, isCacheTokens = True )

    def signInAnonymously( self, callback ):
        self._sendAuthRequest( AUTH_SIGNUP_ENDPOINT, {
            'returnSecureToken' : True,
        }, callback, isCacheTokens = True )

    def refreshIdToken( self, refreshToken, callback ):
        self._sendAuthRequest( AUTH_REFRESH_ENDPOINT, {
            'grant_type' : 'refresh_token',
            'refresh_token' : refreshToken,
        }, callback, isCacheTokens = True )

    def sendPasswordResetEmail( self, email, callback ):
        self._sendAuthRequest( AUTH_RESET_PASSWORD_ENDPOINT, {
            'requestType' : 'PASSWORD_RESET',
            'email' : email,
        }, callback )

    def updateEmail( self, idToken, newEmail, callback ):
        self._sendAuthRequest( AUTH_UPDATE_ENDPOINT, {
            'idToken' : idToken,
            'email' : newEmail,
            'returnSecureToken' : True,
        }, callback, isCacheTokens = True )

    def updatePassword( self, idToken, newPassword, callback ):
        self._sendAuthRequest( AUTH_UPDATE_ENDPOINT, {
            'idToken' : idToken,
            'password' : newPassword,
            'returnSecureToken' : True,
        }, callback, isCacheTokens = True )

    def updateProfile( self, idToken, displayName, photoUrl, callback ):
        payload = { 'idToken' : idToken }
        if displayName:
            payload[ 'displayName' ] = displayName
        if photoUrl:
            payload[ 'photoUrl' ] = photoUrl
        payload[ 'returnSecureToken' ] = True
        self._sendAuthRequest( AUTH_UPDATE_ENDPOINT, payload, callback, isCacheTokens = True )

    def sendEmailVerification( self, idToken, callback ):
        self._sendAuthRequest( AUTH_SEND_VERIFICATION_ENDPOINT, {
            'requestType' : 'VERIFY_EMAIL',
            'idToken' : idToken,
        }, callback )

    def deleteAccount( self, idToken, callback ):
        self._sendAuthRequest( AUTH_DELETE_ENDPOINT, {
            'idToken' : idToken,
        }, callback )

    def getUserData( self, idToken, callback ):
        self._sendAuthRequest( AUTH_GET_USER_ENDPOINT, {
            'idToken' : idToken,
        }, callback )

    def _sendAuthRequest( self, endpoint, payload, callback, isCacheTokens = False ):
        url = '%s?key=%s' % ( endpoint, urlescape( self._apiKey, safe = '' ) )

        def _onComplete( resp ):
            if not resp.completed:
                self._debug( 'Firebase Auth Network Error' )
                callback( False, NETWORK_ERROR )
                return
            if not resp.isSuccess:
                self._debug( 'Firebase Auth Error: %d - %s' % ( resp.statusCode, resp.body ) )
                callback( False, httpErrorMessage( resp ) )
                return
            if isCacheTokens:
                self.credentials.updateFromResponse( resp.body )
            callback( True, resp.body )

        self._transport.request( POST, url, _onComplete, headers = _JSON_HEADERS, body = json_utils.dumps( payload ) )

    # Database.

    def buildDatabaseUrl( self, path, params = None ):
        '''Full URL of a database path.

        Args:
            path (str): database path, with or without leading slash.
            params (list): ( name, value ) query parameters, values are percent-encoded.
        '''
        if not self._databaseUrl:
            raise FirebaseApiException( 'No database URL configured.' )
        url = '%s%s.json' % ( self._databaseUrl, normalizePath( path ) )
        if params:
            url += '?' + '&'.join( '%s=%s' % ( k, urlescape( str( v ), safe = '' ) ) for k, v in params )
        return url

    def setValue( self, path, jsonValue, authToken, callback ):
        self._sendDatabaseRequest( path, PUT, jsonValue, authToken, None, callback )

    def getValue( self, path, authToken, callback ):
        self._sendDatabaseRequest( path, GET, None, authToken, None, callback )

    def updateValue( self, path, jsonValue, authToken, callback ):
        self._sendDatabaseRequest( path, PATCH, jsonValue, authToken, None, callback )

    def deleteValue( self, path, authToken, callback ):
        self._sendDatabaseRequest( path, DELETE, None, authToken, None, callback )

    def pushValue( self, path, jsonValue, authToken, callback ):
        self._sendDatabaseRequest( path, POST, jsonValue, authToken, None, callback )

    def query( self, path, query, authToken, callback ):
        self._sendDatabaseRequest( path, GET, None, authToken, query.toParams(), callback )

    def queryOrderByChild( self, path, childKey, authToken, callback ):
        self.query( path, Query( orderBy = childKey ), authToken, callback )

    def queryLimitToFirst( self, path, limit, authToken, callback ):
        self.query( path, Query( limitToFirst = limit ), authToken, callback )

    def queryLimitToLast( self, path, limit, authToken, callback ):
        self.query( path, Query( limitToLast = limit ), authToken, callback )

    def queryStartAt( self, path, value, authToken, callback ):
        self.query( path, Query( startAt = value ), authToken, callback )

    def queryEndAt( self, path, value, authToken, callback ):
        self.query( path, Query( endAt = value ), authToken, callback )

    def queryEqualTo( self, path, value, authToken, callback ):
        self.query( path, Query( equalTo = value ), authToken, callback )

    def _sendDatabaseRequest( self, path, verb, jsonBody, authToken, params, callback ):
        # The token is appended after the operation's own parameters.
        params = list( params or [] )
        if authToken:
            params.append( ( 'auth', authToken ) )
        try:
            url = self.buildDatabaseUrl( path, params )
        except FirebaseApiException as e:
            self._debug( 'Firebase Database Error: %s' % ( e, ) )
            callback( False, str( e ) )
            return

        def _onComplete( resp ):
            if not resp.completed:
                self._debug( 'Firebase Database Network Error' )
                callback( False, NETWORK_ERROR )
                return
            if not resp.isSuccess:
                self._debug( 'Firebase Database Error: %d - %s' % ( resp.statusCode, resp.body ) )
                callback( False, httpErrorMessage( resp ) )
                return
            callback( True, resp.body )

        self._transport.request( verb, url, _onComplete, headers = _JSON_HEADERS, body = jsonBody if jsonBody else None )

    # Time.

    def getTrustedServerTime( self, callback ):
        '''Get the current time from the trusted time service.

        Always calls callback( True, <milliseconds since epoch> ), falling back
        to the local clock when the service can't be used. Use
        TrustedTimeResolver directly to know which source was used.
        '''
        self._timeResolver.resolve( lambda result: callback( True, result.data ) )
