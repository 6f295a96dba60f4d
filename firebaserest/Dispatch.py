import queue
import threading
import time
import traceback

from .utils import FirebaseApiException


class Dispatcher( object ):
    '''Decides on which thread operation callbacks run.'''

    def __init__( self, printDebug = None ):
        self._printDebug = printDebug

    def post( self, fn, *args ):
        raise NotImplementedError()

    def pump( self, timeout = 0 ):
        return 0

    def _run( self, fn, args ):
        try:
            fn( *args )
        except Exception:
            # A failing callback must not prevent the others from running.
            if self._printDebug is not None:
                self._printDebug( 'callback raised:\n%s' % ( traceback.format_exc(), ) )


class QueuedDispatcher( Dispatcher ):
    '''Runs callbacks on the thread that owns the dispatcher.

    Completions arriving on transport workers are queued, the owning thread
    runs them when it calls pump(). This is the default: callbacks never run
    concurrently with the caller's own code.
    '''

    def __init__( self, printDebug = None ):
        super().__init__( printDebug )
        self._queue = queue.Queue()
        self._ownerThread = threading.get_ident()

    def post( self, fn, *args ):
        self._queue.put( ( fn, args ) )

    def pending( self ):
        return self._queue.qsize()

    def pump( self, timeout = 0 ):
        '''Run queued callbacks.

        Args:
            timeout (float): seconds to wait for a first callback if none is queued, 0 to not wait.

        Returns:
            number of callbacks run.
        '''
        if threading.get_ident() != self._ownerThread:
            raise FirebaseApiException( 'callbacks can only be pumped from the thread that created the dispatcher' )

        nRun = 0
        deadline = time.monotonic() + ( timeout or 0 )
        while True:
            try:
                if nRun == 0 and timeout:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    fn, args = self._queue.get( timeout = remaining )
                else:
                    fn, args = self._queue.get_nowait()
            except queue.Empty:
                break
            self._run( fn, args )
            nRun += 1
        return nRun


class InlineDispatcher( Dispatcher ):
    '''Runs callbacks immediately on whichever thread completed the operation.

    Callbacks are serialized by a lock so two of them never run at the same time.
    '''

    def __init__( self, printDebug = None ):
        super().__init__( printDebug )
        self._lock = threading.RLock()

    def post( self, fn, *args ):
        with self._lock:
            self._run( fn, args )
