from enum import Enum

from .constants import NETWORK_ERROR


class OperationResult( object ):
    '''Uniform result passed to the callback of every operation.

    Attributes:
        success (bool): True if the backend accepted the operation.
        operationId (str): identifier allocated when the operation was issued.
        data (str): opaque JSON response body, or the error text on failure.
        errorMessage (str): raw error body, "HTTP <status>" for an empty one, or "Network error", empty on success.
    '''

    def __init__( self, success = False, operationId = '', data = '', errorMessage = '' ):
        self.success = success
        self.operationId = operationId
        self.data = data
        self.errorMessage = errorMessage
        if not self.success and not self.errorMessage:
            self.errorMessage = self.data or NETWORK_ERROR

    def __bool__( self ):
        return bool( self.success )

    def __repr__( self ):
        return '%s(%s)' % ( self.__class__.__name__, ', '.join( '%s=%r' % ( k, v ) for k, v in self.__dict__.items() ) )


class AuthResult( OperationResult ):
    '''Result of an identity operation.'''

    def __init__( self, success = False, operationId = '', data = '', errorMessage = '', userId = '', email = '', displayName = '', authToken = '', refreshToken = '' ):
        self.userId = userId
        self.email = email
        self.displayName = displayName
        self.authToken = authToken
        self.refreshToken = refreshToken
        super().__init__( success, operationId, data, errorMessage )


class DatabaseResult( OperationResult ):
    '''Result of a database operation, carries the path it was issued for.'''

    def __init__( self, success = False, operationId = '', data = '', errorMessage = '', path = '' ):
        self.path = path
        super().__init__( success, operationId, data, errorMessage )


class TimeTrust( str, Enum ):
    TRUSTED = 'trusted'
    FALLBACK = 'fallback'


class TimeResult( OperationResult ):
    '''Result of a trusted time fetch.

    success is always True. The timestamp is in data (decimal string of
    milliseconds since epoch) and timestampMs, trust tells whether it came from
    the time service or from the local clock.
    '''

    def __init__( self, timestampMs, trust, operationId = '' ):
        self.timestampMs = int( timestampMs )
        self.trust = trust
        super().__init__( True, operationId, str( self.timestampMs ), '' )

    @property
    def isTrusted( self ):
        return self.trust == TimeTrust.TRUSTED
