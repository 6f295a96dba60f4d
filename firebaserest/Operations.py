import itertools
import threading

from .utils import FirebaseApiException

CREATED = 'created'
PENDING = 'pending'
RESOLVED = 'resolved'


class OperationIdGenerator( object ):
    '''Allocates process-unique operation ids like "AUTH_1", "AUTH_2".'''

    def __init__( self, prefix ):
        self._prefix = prefix
        self._counter = itertools.count( 1 )
        self._lock = threading.Lock()

    @property
    def prefix( self ):
        return self._prefix

    def next( self ):
        with self._lock:
            return '%s_%d' % ( self._prefix, next( self._counter ) )


class Operation( object ):
    '''One issued operation and the continuation waiting for its result.

    The continuation is invoked at most once, a second resolve() is ignored and
    reported through the debug function.
    '''

    def __init__( self, opId, continuation, printDebug = None ):
        self.id = opId
        self._continuation = continuation
        self._printDebug = printDebug
        self._state = CREATED
        self._lock = threading.Lock()

    @property
    def state( self ):
        return self._state

    def start( self ):
        with self._lock:
            if self._state == CREATED:
                self._state = PENDING
        return self

    def resolve( self, result ):
        '''Deliver the result to the continuation.

        Args:
            result (OperationResult): the result, its operationId is set to this operation's id.

        Returns:
            True if the continuation was invoked, False if the operation was already resolved.
        '''
        with self._lock:
            if self._state == RESOLVED:
                if self._printDebug is not None:
                    self._printDebug( 'operation %s already resolved, dropping result' % ( self.id, ) )
                return False
            self._state = RESOLVED
            continuation = self._continuation
            self._continuation = None

        result.operationId = self.id
        if continuation is not None:
            continuation( result )
        return True


class PendingOperations( object ):
    '''Operations waiting for an inbound event that carries their id.

    Used where completions are not attached to the request itself (the native
    bridge): each event resolves and removes exactly the one operation it names.
    '''

    def __init__( self, printDebug = None ):
        self._ops = {}
        self._lock = threading.Lock()
        self._printDebug = printDebug

    def register( self, op ):
        with self._lock:
            if op.id in self._ops:
                raise FirebaseApiException( 'operation %s already registered' % ( op.id, ) )
            self._ops[ op.id ] = op
        op.start()
        return op

    def resolve( self, opId, result ):
        '''Resolve the operation with this id.

        Returns:
            True if a pending operation was found and resolved.
        '''
        with self._lock:
            op = self._ops.pop( opId, None )
        if op is None:
            if self._printDebug is not None:
                self._printDebug( 'no pending operation with id %s, dropping result' % ( opId, ) )
            return False
        return op.resolve( result )

    def discard( self, opId ):
        with self._lock:
            return self._ops.pop( opId, None ) is not None

    def __contains__( self, opId ):
        with self._lock:
            return opId in self._ops

    def __len__( self ):
        with self._lock:
            return len( self._ops )
