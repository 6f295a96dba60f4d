from enum import Enum

from . import json_utils
from .constants import DEFAULT_REQUEST_TIMEOUT
from .constants import DEFAULT_TIME_TIMEOUT
from .constants import TIME_SERVICE_URL
from .utils import FirebaseApiException


class DatabaseRegion( str, Enum ):
    US_CENTRAL = 'us-central1'
    EUROPE_WEST = 'europe-west1'
    ASIA_SOUTHEAST = 'asia-southeast1'

    @property
    def hostSuffix( self ):
        # The default region has no suffix in database host names.
        if self is DatabaseRegion.US_CENTRAL:
            return ''
        return '-%s' % ( self.value, )


class AuthProvider( str, Enum ):
    EMAIL = 'email'
    GOOGLE = 'google'
    ANONYMOUS = 'anonymous'


# Settings persisted in the configuration file, with their defaults.
_FIELDS = {
    'project_id' : '',
    'app_id' : '',
    'api_key' : '',
    'database_url' : '',
    'storage_bucket' : '',
    'database_region' : DatabaseRegion.US_CENTRAL.value,
    'request_timeout' : DEFAULT_REQUEST_TIMEOUT,
    'time_service_url' : TIME_SERVICE_URL,
    'time_timeout' : DEFAULT_TIME_TIMEOUT,
    'use_rest_api' : True,
    'enable_authentication' : True,
    'enable_realtime_database' : True,
    'auth_providers' : [ AuthProvider.EMAIL.value, AuthProvider.ANONYMOUS.value ],
}


class FirebaseSettings( object ):
    '''Project settings.

    Attributes:
        project_id (str): Firebase project ID.
        app_id (str): application ID, ex: "1:1234567890:android:abcdef".
        api_key (str): web API key.
        database_url (str): Realtime Database URL, derived from project_id and database_region when empty.
        storage_bucket (str): storage bucket name.
        database_region (DatabaseRegion): region used to derive the database URL.
        request_timeout (float): HTTP request timeout in seconds.
        time_service_url (str): trusted time service endpoint.
        time_timeout (float): time service timeout in seconds.
        use_rest_api (bool): use the REST backend rather than a native bridge.
        enable_authentication (bool): authentication is used by the application.
        enable_realtime_database (bool): the database is used by the application.
        auth_providers (list of str): enabled sign-in providers.
    '''

    def __init__( self, **kwargs ):
        for k, default in _FIELDS.items():
            value = kwargs.pop( k, default )
            if isinstance( value, list ):
                value = list( value )
            setattr( self, k, value )
        if kwargs:
            raise FirebaseApiException( 'unknown settings: %s' % ( ', '.join( sorted( kwargs.keys() ) ), ) )
        try:
            self.database_region = DatabaseRegion( self.database_region )
        except ValueError:
            raise FirebaseApiException( 'invalid database region: %s' % ( self.database_region, ) )

    @classmethod
    def fromDict( cls, data ):
        '''Build settings from a configuration file section, ignoring unrelated keys.'''
        return cls( **{ k : v for k, v in ( data or {} ).items() if k in _FIELDS } )

    @classmethod
    def fromGoogleServicesJson( cls, path, **overrides ):
        '''Import the project settings from a google-services.json file.

        Args:
            path (str): path to the file downloaded from the Firebase console.
            overrides: settings taking precedence over the file's.
        '''
        try:
            with open( path, 'rb' ) as f:
                data = json_utils.loads( f.read() )
        except ( OSError, ValueError ) as e:
            raise FirebaseApiException( 'failed to read %s: %s' % ( path, e ) )

        projectInfo = data.get( 'project_info', {} )
        clients = data.get( 'client', [] )
        client = clients[ 0 ] if clients else {}
        apiKeys = client.get( 'api_key', [] )

        values = {
            'project_id' : projectInfo.get( 'project_id', '' ),
            'database_url' : projectInfo.get( 'firebase_url', '' ),
            'storage_bucket' : projectInfo.get( 'storage_bucket', '' ),
            'app_id' : client.get( 'client_info', {} ).get( 'mobilesdk_app_id', '' ),
            'api_key' : apiKeys[ 0 ].get( 'current_key', '' ) if apiKeys else '',
        }
        values.update( overrides )
        return cls( **values )

    def toDict( self ):
        ret = { k : getattr( self, k ) for k in _FIELDS }
        ret[ 'database_region' ] = self.database_region.value
        return ret

    def get_full_database_url( self ):
        if self.database_url:
            return self.database_url
        if self.project_id:
            return 'https://%s%s.firebaseio.com' % ( self.project_id, self.database_region.hostSuffix )
        return ''

    def is_authentication_configured( self ):
        return bool( self.enable_authentication and self.project_id and self.api_key and self.auth_providers )

    def is_database_configured( self ):
        return bool( self.enable_realtime_database and self.project_id and self.get_full_database_url() )

    def validate( self ):
        '''Check the settings are usable.

        Returns:
            ( bool, str ): whether they are valid and a message describing the first problem found.
        '''
        if not self.project_id:
            return False, 'Project ID is required'
        if not self.api_key:
            return False, 'API Key is required'
        if not self.use_rest_api and not self.app_id:
            return False, 'App ID is required'
        if self.enable_authentication and not self.auth_providers:
            return False, 'At least one authentication provider must be enabled'
        if self.enable_realtime_database and not self.get_full_database_url():
            return False, 'Database URL is required when Realtime Database is enabled'
        return True, 'Settings are valid'

    def __repr__( self ):
        return 'FirebaseSettings(project_id=%r, database_url=%r)' % ( self.project_id, self.get_full_database_url() )
