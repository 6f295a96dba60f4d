import re
import shlex

_AUTH_PARAM_RE = re.compile( r'([?&]auth=)[^&]*' )
_SECRET_FIELD_RE = re.compile( r'("(?:password|idToken|refreshToken|refresh_token|oobCode)"\s*:\s*)"(?:[^"\\]|\\.)*"' )


def redactUrl( url ):
    '''Hide the ID token passed as the "auth" query parameter.'''
    return _AUTH_PARAM_RE.sub( r'\1<redacted>', url )


def redactBody( body ):
    '''Hide passwords and tokens in a JSON request body.'''
    return _SECRET_FIELD_RE.sub( r'\1"<redacted>"', body )


def getCurlCommandString( verb, url, headers = None, body = None ):
    """
    Build a cURL command string for a specific request to aid with debugging.

    Args:
        verb (str): HTTP method.
        url (str): full URL, the auth token is redacted.
        headers (dict): request headers.
        body (str or bytes): request body, credentials are redacted.
    """
    parts = [ "curl", "-X", shlex.quote( verb ) ]

    for header, value in ( headers or {} ).items():
        parts.extend( [ "-H", shlex.quote( f"{header}: {value}" ) ] )

    if body:
        if isinstance( body, bytes ):
            body = body.decode( "utf-8", errors = "replace" )
        parts.extend( [ "-d", shlex.quote( redactBody( body ) ) ] )

    parts.append( shlex.quote( redactUrl( url ) ) )

    return " ".join( parts )
