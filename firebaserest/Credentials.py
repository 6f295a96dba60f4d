import threading
import time

from . import json_utils
from .constants import TOKEN_REFRESH_BUFFER

# Response fields copied into the cache. The token refresh endpoint uses
# snake_case names for the same values.
_FIELD_ALIASES = {
    'idToken' : ( 'idToken', 'id_token' ),
    'refreshToken' : ( 'refreshToken', 'refresh_token' ),
    'userId' : ( 'localId', 'user_id' ),
    'email' : ( 'email', ),
    'displayName' : ( 'displayName', ),
}
_EXPIRES_IN_ALIASES = ( 'expiresIn', 'expires_in' )


class Credentials( object ):
    '''Immutable snapshot of the cached credentials.'''

    __slots__ = ( 'idToken', 'refreshToken', 'userId', 'email', 'displayName', 'expiresAt' )

    def __init__( self, idToken = '', refreshToken = '', userId = '', email = '', displayName = '', expiresAt = 0 ):
        object.__setattr__( self, 'idToken', idToken )
        object.__setattr__( self, 'refreshToken', refreshToken )
        object.__setattr__( self, 'userId', userId )
        object.__setattr__( self, 'email', email )
        object.__setattr__( self, 'displayName', displayName )
        object.__setattr__( self, 'expiresAt', expiresAt )

    def __setattr__( self, name, value ):
        raise AttributeError( 'Credentials are read-only' )

    def __eq__( self, other ):
        if not isinstance( other, Credentials ):
            return NotImplemented
        return all( getattr( self, k ) == getattr( other, k ) for k in self.__slots__ )

    def __repr__( self ):
        # Tokens are never printed in full.
        return 'Credentials(userId=%r, email=%r, idToken=%s, refreshToken=%s, expiresAt=%r)' % (
            self.userId,
            self.email,
            _redact( self.idToken ),
            _redact( self.refreshToken ),
            self.expiresAt )

    @property
    def isSignedIn( self ):
        return self.idToken != ''

    def toDict( self ):
        return { k : getattr( self, k ) for k in self.__slots__ }


def _redact( token ):
    if not token:
        return "''"
    return "'%s...'" % ( token[ : 6 ], )


class CredentialCache( object ):
    '''Most recently obtained ID token, refresh token, user id and email.

    Written by successful auth responses on transport worker threads and read
    when database requests are built, every access goes through a lock and
    readers get a consistent Credentials snapshot.
    '''

    def __init__( self, clock = time.time ):
        self._lock = threading.Lock()
        self._creds = Credentials()
        self._clock = clock

    def snapshot( self ):
        with self._lock:
            return self._creds

    @property
    def idToken( self ):
        return self.snapshot().idToken

    @property
    def refreshToken( self ):
        return self.snapshot().refreshToken

    @property
    def userId( self ):
        return self.snapshot().userId

    @property
    def email( self ):
        return self.snapshot().email

    @property
    def isSignedIn( self ):
        return self.snapshot().isSignedIn

    def clear( self ):
        with self._lock:
            self._creds = Credentials()

    def set( self, **fields ):
        '''Overwrite the given fields, leaving the others unchanged.'''
        with self._lock:
            values = self._creds.toDict()
            for k, v in fields.items():
                if k not in values:
                    raise AttributeError( 'unknown credential field: %s' % ( k, ) )
                values[ k ] = v
            self._creds = Credentials( **values )

    def updateFromResponse( self, response ):
        '''Copy the credential fields present in an auth response body.

        Fields absent from the response keep their cached value. A body that is
        not a JSON object changes nothing.

        Args:
            response (str or dict): the response body.

        Returns:
            True if at least one field was updated.
        '''
        if isinstance( response, dict ):
            data = response
        else:
            data = json_utils.try_loads( response )
        if not isinstance( data, dict ):
            return False

        updates = {}
        for field, aliases in _FIELD_ALIASES.items():
            for alias in aliases:
                value = data.get( alias, None )
                if isinstance( value, str ):
                    updates[ field ] = value
                    break

        for alias in _EXPIRES_IN_ALIASES:
            expiresIn = data.get( alias, None )
            if expiresIn is None:
                continue
            try:
                updates[ 'expiresAt' ] = int( self._clock() ) + int( expiresIn )
            except ( TypeError, ValueError ):
                pass
            break

        if not updates:
            return False
        self.set( **updates )
        return True

    def needsRefresh( self, buffer = TOKEN_REFRESH_BUFFER ):
        '''True when a refresh token is cached and the ID token is about to expire.

        A token whose expiry was never reported is considered fresh.
        '''
        creds = self.snapshot()
        if not creds.refreshToken or not creds.expiresAt:
            return False
        return int( self._clock() ) >= ( creds.expiresAt - buffer )
