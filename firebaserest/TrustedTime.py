from . import json_utils
from .constants import TIME_SERVICE_URL
from .constants import DEFAULT_TIME_TIMEOUT
from .Results import TimeResult
from .Results import TimeTrust
from .time_utils import now_ms
from .time_utils import parse_iso_datetime_ms
from .time_utils import parse_epoch_seconds_ms
from .utils import GET

# Response fields tried in order, first one that parses wins.
_TIME_FIELDS = (
    ( 'dateTime', parse_iso_datetime_ms ),
    ( 'datetime', parse_iso_datetime_ms ),
    ( 'unixtime', parse_epoch_seconds_ms ),
    ( 'timestamp', parse_epoch_seconds_ms ),
)


def parseTimeResponse( body ):
    '''Extract a timestamp from a time service response.

    Args:
        body (str): response body.

    Returns:
        milliseconds since epoch, or None if no supported field is present.
    '''
    data = json_utils.try_loads( body )
    if not isinstance( data, dict ):
        return None
    for field, parser in _TIME_FIELDS:
        if field not in data:
            continue
        try:
            return parser( data[ field ] )
        except ValueError:
            continue
    return None


class TrustedTimeResolver( object ):
    '''Gets the current time from an external time service.

    The local clock can be set by the user, the time service can't. When the
    service is unreachable or answers something unexpected the local clock is
    used anyway: the result is still a success but its trust is FALLBACK.
    '''

    def __init__( self, transport, url = TIME_SERVICE_URL, timeout = DEFAULT_TIME_TIMEOUT, clock = now_ms, printDebug = None ):
        self._transport = transport
        self._url = url
        self._timeout = timeout
        self._clock = clock
        self._printDebug = printDebug

    def resolve( self, callback ):
        '''Fetch the time, calling callback( TimeResult ) exactly once.'''

        def _onComplete( resp ):
            timestamp = None
            reason = None
            if not resp.completed:
                reason = 'time service unreachable'
            elif not resp.isSuccess:
                reason = 'time service returned %d' % ( resp.statusCode, )
            else:
                timestamp = parseTimeResponse( resp.body )
                if timestamp is None:
                    reason = 'unrecognized time service response'

            if timestamp is not None:
                callback( TimeResult( timestamp, TimeTrust.TRUSTED ) )
                return

            if self._printDebug is not None:
                self._printDebug( 'WARNING: %s, using local device time which may not be accurate or trustworthy' % ( reason, ) )
            callback( TimeResult( self._clock(), TimeTrust.FALLBACK ) )

        self._transport.request( GET, self._url, _onComplete, timeout = self._timeout )
