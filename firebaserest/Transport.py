from concurrent.futures import ThreadPoolExecutor
import threading
import traceback

import requests

from . import __version__
from .constants import DEFAULT_REQUEST_TIMEOUT
from .constants import DEFAULT_MAX_CONCURRENT
from .request_utils import getCurlCommandString
from .request_utils import redactUrl
from .user_agent_utils import build_user_agent


class TransportResponse( object ):
    '''Outcome of one HTTP request.

    Attributes:
        completed (bool): False if no HTTP response was received (DNS, connection, timeout...).
        statusCode (int): HTTP status, 0 when not completed.
        body (str): response body, empty when not completed.
    '''

    __slots__ = ( 'completed', 'statusCode', 'body' )

    def __init__( self, completed, statusCode = 0, body = '' ):
        self.completed = completed
        self.statusCode = statusCode
        self.body = body

    @property
    def isSuccess( self ):
        return self.completed and 200 <= self.statusCode < 300

    def __repr__( self ):
        return 'TransportResponse(completed=%r, statusCode=%r, body=%r)' % ( self.completed, self.statusCode, self.body[ : 200 ] )


class HttpTransport( object ):
    '''Issues HTTP requests on a bounded pool of worker threads.

    request() never blocks. The completion handler is called exactly once per
    request, on the worker thread, with a TransportResponse.
    '''

    def __init__( self, timeout = DEFAULT_REQUEST_TIMEOUT, maxConcurrent = DEFAULT_MAX_CONCURRENT, session = None, printDebug = None ):
        '''Create a transport.

        Args:
            timeout (float): default per-request timeout in seconds.
            maxConcurrent (int): maximum number of requests in flight, further requests wait for a free worker.
            session (requests.Session): optional session to use, one is created otherwise.
            printDebug (function(message)): receives request debug messages.
        '''
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update( { 'User-Agent' : build_user_agent( 'firebaserest-py', __version__ ) } )
        self._executor = ThreadPoolExecutor( max_workers = maxConcurrent, thread_name_prefix = 'firebaserest-http' )
        self._printDebug = printDebug
        self._lock = threading.Lock()
        self._isClosed = False

    @property
    def timeout( self ):
        return self._timeout

    def request( self, verb, url, onComplete, headers = None, body = None, timeout = None ):
        '''Start an HTTP request.

        Args:
            verb (str): HTTP method.
            url (str): full URL including query string.
            onComplete (function(TransportResponse)): completion handler.
            headers (dict): extra headers.
            body (str): request body.
            timeout (float): overrides the default timeout for this request.

        Returns:
            the concurrent.futures.Future of the request.
        '''
        with self._lock:
            if not self._isClosed:
                return self._executor.submit( self._perform, verb, url, onComplete, headers, body, timeout )

        # Still honor the completion contract once closed.
        self._debug( '%s %s dropped, transport is closed' % ( verb, redactUrl( url ) ) )
        self._complete( onComplete, TransportResponse( False ) )
        return None

    def _perform( self, verb, url, onComplete, headers, body, timeout ):
        timeout = self._timeout if timeout is None else timeout
        try:
            resp = self._session.request( verb,
                                          url,
                                          headers = headers,
                                          data = body.encode( 'utf-8' ) if isinstance( body, str ) else body,
                                          timeout = timeout )
            ret = TransportResponse( True, resp.status_code, resp.text )
        except requests.exceptions.RequestException as e:
            self._debug( '%s %s failed: %s' % ( verb, redactUrl( url ), e ) )
            ret = TransportResponse( False )

        self._debug( '%s %s ==> %s' % ( verb, redactUrl( url ), ret.statusCode if ret.completed else 'no response' ) )
        self._debug( 'cURL command: %s' % ( getCurlCommandString( verb, url, headers, body ), ) )

        self._complete( onComplete, ret )
        return ret

    def _complete( self, onComplete, ret ):
        try:
            onComplete( ret )
        except Exception:
            self._debug( 'completion handler raised:\n%s' % ( traceback.format_exc(), ) )

    def _debug( self, msg ):
        if self._printDebug is not None:
            self._printDebug( msg )

    def close( self, wait = True ):
        '''Stop accepting requests, optionally waiting for in-flight ones.'''
        with self._lock:
            if self._isClosed:
                return
            self._isClosed = True
        self._executor.shutdown( wait = wait )
        self._session.close()
