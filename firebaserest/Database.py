import random
import threading

from . import json_utils
from .constants import DATABASE_OPERATION_PREFIX
from .Operations import Operation
from .Operations import OperationIdGenerator
from .RestClient import Query
from .time_utils import now_ms

# Push id alphabet, in ASCII order so that ids sort like their timestamps.
PUSH_CHARS = '-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz'

# Placeholder replaced by the backend with its own time when written.
SERVER_TIMESTAMP = { '.sv' : 'timestamp' }


class PushIdGenerator( object ):
    '''Generates 20 character keys that sort chronologically.

    The first 8 characters encode the timestamp in milliseconds, the last 12
    are random. Two ids generated in the same millisecond reuse the random part
    incremented by one, so they still sort in generation order.
    '''

    def __init__( self, clock = now_ms, rng = None ):
        self._clock = clock
        self._rng = rng if rng is not None else random.SystemRandom()
        self._lock = threading.Lock()
        self._lastTime = None
        self._lastRandom = [ 0 ] * 12

    def next( self ):
        with self._lock:
            now = int( self._clock() )
            isDuplicateTime = now == self._lastTime
            self._lastTime = now

            timeChars = []
            for _ in range( 8 ):
                timeChars.append( PUSH_CHARS[ now % 64 ] )
                now //= 64
            timeChars.reverse()

            if not isDuplicateTime:
                self._lastRandom = [ self._rng.randrange( 64 ) for _ in range( 12 ) ]
            else:
                i = 11
                while i >= 0 and self._lastRandom[ i ] == 63:
                    self._lastRandom[ i ] = 0
                    i -= 1
                if i >= 0:
                    self._lastRandom[ i ] += 1

            return ''.join( timeChars ) + ''.join( PUSH_CHARS[ n ] for n in self._lastRandom )


def toJsonValue( data ):
    '''JSON text of a value: strings are taken as already serialized JSON.'''
    if isinstance( data, str ):
        return data
    if isinstance( data, json_utils.JsonPayload ):
        return str( data )
    return json_utils.dumps( data )


class Database( object ):
    '''Realtime Database access.

    Values are exchanged as JSON text. Every operation returns its operation id
    immediately and later calls callback( DatabaseResult ) through the
    dispatcher, the result carrying the path the operation was issued for.

    When an Auth object is given, operations wait for an about to expire ID
    token to be refreshed before being sent.
    '''

    def __init__( self, backend, dispatcher, auth = None, isAutoRefresh = True, pushIdGenerator = None, printDebug = None ):
        self._backend = backend
        self._dispatcher = dispatcher
        self._auth = auth
        self._isAutoRefresh = isAutoRefresh
        self._printDebug = printDebug
        self._ids = OperationIdGenerator( DATABASE_OPERATION_PREFIX )
        self._pushIds = pushIdGenerator if pushIdGenerator is not None else PushIdGenerator()
        self._lock = threading.Lock()
        self._listeners = {}
        self._lastPolled = {}
        self._backend.setValueChangedHandler( self._onValueChanged )

    def _issue( self, operation, path, params, callback, onResult = None ):
        def _continuation( result ):
            if onResult is not None:
                onResult( result )
            if callback is not None:
                self._dispatcher.post( callback, result )

        op = Operation( self._ids.next(), _continuation, printDebug = self._printDebug )

        def _send():
            self._backend.database( op, operation, path, params )

        if self._auth is not None and self._isAutoRefresh:
            self._auth.ensure_fresh_token( _send )
        else:
            _send()
        return op.id

    # Writes.

    def set_value( self, path, data, callback = None ):
        '''Replace the value at path.

        Args:
            path (str): database path.
            data (str, dict, list or JsonPayload): the value, a str is sent as is and must be valid JSON.
            callback (function(DatabaseResult)): called when done.
        '''
        return self._issue( 'setValue', path, { 'data' : toJsonValue( data ) }, callback )

    def update_value( self, path, data, callback = None ):
        '''Merge the children of data into the value at path.'''
        return self._issue( 'updateValue', path, { 'data' : toJsonValue( data ) }, callback )

    def push_value( self, path, data, callback = None ):
        '''Append data under a new server generated key, returned in the result data as {"name": key}.'''
        return self._issue( 'pushValue', path, { 'data' : toJsonValue( data ) }, callback )

    def delete_value( self, path, callback = None ):
        return self._issue( 'deleteValue', path, {}, callback )

    # Reads.

    def get_value( self, path, callback = None ):
        return self._issue( 'getValue', path, {}, callback )

    def query( self, path, query, callback = None ):
        return self._issue( 'query', path, { 'query' : query }, callback )

    def query_values( self, path, order_by_key = '', limit_to_first = 0, start_at = '', end_at = '', callback = None ):
        '''Combined query, empty or zero arguments are left out.'''
        return self.query( path, Query( orderBy = order_by_key or None,
                                        limitToFirst = limit_to_first or None,
                                        startAt = start_at or None,
                                        endAt = end_at or None ), callback )

    def query_order_by_child( self, path, child_key, callback = None ):
        return self.query( path, Query( orderBy = child_key ), callback )

    def query_limit_to_first( self, path, limit, callback = None ):
        return self.query( path, Query( limitToFirst = limit ), callback )

    def query_limit_to_last( self, path, limit, callback = None ):
        return self.query( path, Query( limitToLast = limit ), callback )

    def query_start_at( self, path, value, callback = None ):
        return self.query( path, Query( startAt = value ), callback )

    def query_end_at( self, path, value, callback = None ):
        return self.query( path, Query( endAt = value ), callback )

    def query_equal_to( self, path, value, callback = None ):
        return self.query( path, Query( equalTo = value ), callback )

    # Listeners.

    def listen_for_value_changes( self, path, callback ):
        '''Call callback( path, data ) when the value at path changes.

        The native SDK pushes changes as they happen. Over REST nothing is
        pushed, poll_listeners() must be called to check for changes.
        '''
        with self._lock:
            self._listeners[ path ] = callback
            self._lastPolled.pop( path, None )
        self._backend.listen( path )

    def stop_listening( self, path ):
        with self._lock:
            isKnown = self._listeners.pop( path, None ) is not None
            self._lastPolled.pop( path, None )
        if isKnown:
            self._backend.stopListening( path )

    def listened_paths( self ):
        with self._lock:
            return list( self._listeners.keys() )

    def poll_listeners( self ):
        '''Read every listened path once, calling its listener if the value changed since the last poll.

        Returns:
            list of the operation ids issued.
        '''
        opIds = []
        for path in self.listened_paths():
            opIds.append( self._issue( 'getValue', path, {}, None, onResult = self._onPolled ) )
        return opIds

    def _onPolled( self, result ):
        if not result.success:
            if self._printDebug is not None:
                self._printDebug( 'polling %s failed: %s' % ( result.path, result.errorMessage ) )
            return
        with self._lock:
            if result.path not in self._listeners:
                return
            if self._lastPolled.get( result.path, None ) == result.data:
                return
            self._lastPolled[ result.path ] = result.data
        self._onValueChanged( result.path, result.data )

    def _onValueChanged( self, path, data ):
        with self._lock:
            callback = self._listeners.get( path, None )
        if callback is None:
            if self._printDebug is not None:
                self._printDebug( 'value change for %s has no listener' % ( path, ) )
            return
        self._dispatcher.post( callback, path, data )

    # Utilities.

    def generate_push_id( self ):
        return self._pushIds.next()

    def get_server_timestamp( self ):
        '''JSON placeholder the backend replaces with its own time, ex: set_value( "lastSeen", db.get_server_timestamp() ).'''
        return json_utils.dumps( SERVER_TIMESTAMP )
