import sys
import traceback


def cli(args):
    """
    Command line interface for the firebaserest SDK.

    Args:
        args (list): list of CLI arguments to parse.
    """
    import argparse
    import getpass

    from .App import App
    from .App import getCurrentEnvironment
    from .Database import PushIdGenerator
    from .RestClient import Query
    from .Settings import FirebaseSettings
    from .time_utils import format_timestamp_ms
    from .utils import FirebaseApiException
    from .utils import writeSettingsToConfig
    from . import json_utils
    from . import term_utils

    def getApp( environment ):
        # An explicit environment wins over the globals.
        if environment is None:
            return App()
        return App( environment = environment )

    def runOperation( environment, issue ):
        with getApp( environment ) as app:
            before = app.storableTokens()
            result = app.wait( lambda cb: issue( app, cb ) )
            after = app.storableTokens()
            # Keep refreshed tokens for the next invocation.
            if after is not None and after != before:
                writeSettingsToConfig( environment or getCurrentEnvironment(), tokens = after )
        if not result.success:
            raise FirebaseApiException( result.errorMessage )
        return result

    def readData( data ):
        if data is None or data == '-':
            return sys.stdin.read()
        return data

    parser = argparse.ArgumentParser( prog = 'firebaserest' )
    parser.add_argument( 'action',
                         type = str,
                         help = 'action, currently supported "version", "configure" (store project settings), "login" (sign in and store tokens), "logout" (forget stored tokens), "who" (current project and user), "get", "set", "update", "push", "delete", "query" (database operations), "time" (trusted time), "push-id" (generate a push key)' )
    parser.add_argument( 'opt_arg',
                         type = str,
                         nargs = "?",
                         default = None,
                         help = 'optional argument depending on action' )

    # Everything after the action name is passed to the action's own parser.
    rootArgs = args[ 1: 2 ]
    actionArgs = args[ 2: ]
    args = parser.parse_args( rootArgs )
    action = args.action.lower()

    envParser = argparse.ArgumentParser( add_help = False )
    envParser.add_argument( '--environment', '--env',
                            type = str,
                            default = None,
                            help = 'environment name (default: the current environment)' )

    if action == 'version':
        from . import __version__
        print( "firebaserest Python SDK Version %s" % ( __version__, ) )
    elif action == 'configure':
        parser = argparse.ArgumentParser( prog = 'firebaserest configure', parents = [ envParser ] )
        parser.add_argument( '--google-services',
                             type = str,
                             default = None,
                             help = 'path to a google-services.json file to import settings from' )
        parser.add_argument( '--api-key', type = str, default = None, help = 'web API key' )
        parser.add_argument( '--project-id', type = str, default = None, help = 'project ID' )
        parser.add_argument( '--database-url', type = str, default = None, help = 'Realtime Database URL' )
        parser.add_argument( '--region',
                             type = str,
                             default = None,
                             choices = [ 'us-central1', 'europe-west1', 'asia-southeast1' ],
                             help = 'database region, used to derive the database URL' )
        configureArgs = parser.parse_args( actionArgs )

        overrides = {
            'api_key' : configureArgs.api_key,
            'project_id' : configureArgs.project_id,
            'database_url' : configureArgs.database_url,
            'database_region' : configureArgs.region,
        }
        overrides = { k : v for k, v in overrides.items() if v is not None }
        if configureArgs.google_services:
            settings = FirebaseSettings.fromGoogleServicesJson( configureArgs.google_services, **overrides )
        else:
            if 'api_key' not in overrides:
                overrides[ 'api_key' ] = input( 'Enter the web API key: ' ).strip()
            if 'project_id' not in overrides:
                overrides[ 'project_id' ] = input( 'Enter the project ID: ' ).strip()
            settings = FirebaseSettings( **overrides )

        isValid, message = settings.validate()
        if not isValid:
            raise FirebaseApiException( message )

        environment = configureArgs.environment or 'default'
        writeSettingsToConfig( environment, settings = {
            'api_key' : settings.api_key,
            'project_id' : settings.project_id,
            'app_id' : settings.app_id,
            'storage_bucket' : settings.storage_bucket,
            'database_url' : settings.get_full_database_url(),
        } )
        term_utils.printStatus( 'Settings stored for environment "%s".' % ( environment, ) )
    elif action == 'login':
        parser = argparse.ArgumentParser( prog = 'firebaserest login', parents = [ envParser ] )
        parser.add_argument( '--email', type = str, default = None, help = 'account email' )
        parser.add_argument( '--password', type = str, default = None, help = 'account password, prompted if not set' )
        parser.add_argument( '--anonymous',
                             action = 'store_true',
                             default = False,
                             help = 'sign in as a new anonymous user' )
        loginArgs = parser.parse_args( actionArgs )

        if loginArgs.anonymous:
            issue = lambda app, cb: app.auth.sign_in_anonymously( cb )
        else:
            email = loginArgs.email or input( 'Email: ' ).strip()
            password = loginArgs.password or getpass.getpass( 'Password: ' )
            issue = lambda app, cb: app.auth.sign_in_with_email( email, password, cb )

        result = runOperation( loginArgs.environment, issue )
        term_utils.printStatus( 'Signed in as %s.' % ( result.email or result.userId, ) )
    elif action == 'logout':
        logoutArgs = argparse.ArgumentParser( prog = 'firebaserest logout', parents = [ envParser ] ).parse_args( actionArgs )
        writeSettingsToConfig( logoutArgs.environment or getCurrentEnvironment(), clearTokens = True )
        term_utils.printStatus( 'Signed out.' )
    elif action in ( 'who', 'whoami' ):
        whoArgs = argparse.ArgumentParser( prog = 'firebaserest who', parents = [ envParser ] ).parse_args( actionArgs )
        with getApp( whoArgs.environment ) as app:
            creds = app.backend.currentUser()
            print( term_utils.formatTable( {
                'PROJECT' : app.settings.project_id,
                'DATABASE' : app.settings.get_full_database_url(),
                'USER' : creds.userId or '-',
                'EMAIL' : creds.email or '-',
                'TOKEN EXPIRES' : format_timestamp_ms( creds.expiresAt * 1000 ) if creds.expiresAt else '-',
            } ) )
    elif action in ( 'get', 'delete' ):
        parser = argparse.ArgumentParser( prog = 'firebaserest %s' % ( action, ), parents = [ envParser ] )
        parser.add_argument( 'path', type = str, help = 'database path' )
        dbArgs = parser.parse_args( actionArgs )

        if action == 'get':
            result = runOperation( dbArgs.environment, lambda app, cb: app.database.get_value( dbArgs.path, cb ) )
            print( term_utils.prettyFormatJson( result.data ) )
        else:
            runOperation( dbArgs.environment, lambda app, cb: app.database.delete_value( dbArgs.path, cb ) )
            term_utils.printStatus( 'Deleted %s.' % ( dbArgs.path, ) )
    elif action in ( 'set', 'update', 'push' ):
        parser = argparse.ArgumentParser( prog = 'firebaserest %s' % ( action, ), parents = [ envParser ] )
        parser.add_argument( 'path', type = str, help = 'database path' )
        parser.add_argument( 'data',
                             type = str,
                             nargs = '?',
                             default = None,
                             help = 'JSON value, read from stdin if absent or "-"' )
        dbArgs = parser.parse_args( actionArgs )

        data = readData( dbArgs.data )
        if json_utils.try_loads( data ) is None and data.strip() != 'null':
            raise FirebaseApiException( 'data is not valid JSON' )
        method = {
            'set' : 'set_value',
            'update' : 'update_value',
            'push' : 'push_value',
        }[ action ]
        result = runOperation( dbArgs.environment, lambda app, cb: getattr( app.database, method )( dbArgs.path, data, cb ) )
        print( term_utils.prettyFormatJson( result.data ) )
    elif action == 'query':
        parser = argparse.ArgumentParser( prog = 'firebaserest query', parents = [ envParser ] )
        parser.add_argument( 'path', type = str, help = 'database path' )
        parser.add_argument( '--order-by', type = str, default = None, help = 'child key, "$key" or "$value" to order by' )
        parser.add_argument( '--limit-to-first', type = int, default = None, help = 'only the first N children' )
        parser.add_argument( '--limit-to-last', type = int, default = None, help = 'only the last N children' )
        parser.add_argument( '--start-at', type = str, default = None, help = 'first value to include' )
        parser.add_argument( '--end-at', type = str, default = None, help = 'last value to include' )
        parser.add_argument( '--equal-to', type = str, default = None, help = 'only children equal to this value' )
        queryArgs = parser.parse_args( actionArgs )

        query = Query( orderBy = queryArgs.order_by,
                       limitToFirst = queryArgs.limit_to_first,
                       limitToLast = queryArgs.limit_to_last,
                       startAt = queryArgs.start_at,
                       endAt = queryArgs.end_at,
                       equalTo = queryArgs.equal_to )
        result = runOperation( queryArgs.environment, lambda app, cb: app.database.query( queryArgs.path, query, cb ) )
        print( term_utils.prettyFormatJson( result.data ) )
    elif action == 'time':
        timeArgs = argparse.ArgumentParser( prog = 'firebaserest time', parents = [ envParser ] ).parse_args( actionArgs )
        result = runOperation( timeArgs.environment, lambda app, cb: app.get_trusted_time( cb ) )
        print( term_utils.formatTable( {
            'TIMESTAMP' : result.timestampMs,
            'UTC' : format_timestamp_ms( result.timestampMs ),
            'SOURCE' : 'time service' if result.isTrusted else 'local clock',
        } ) )
    elif action == 'push-id':
        print( PushIdGenerator().next() )
    else:
        raise Exception( 'invalid action: %s' % ( action, ) )

def main():
    args = sys.argv

    # Hack since we don't have access to parsed args here and parsing itself may fail
    debug_mode = False
    if "--debug" in args:
        debug_mode = True
        args.remove("--debug")

    if "--debug-request" in args:
        args.remove("--debug-request")
        from .App import set_default_print_debug_fn
        set_default_print_debug_fn(lambda x: print(x, file=sys.stderr))

    from .term_utils import printError
    try:
        cli(args)
    except Exception as e:
        printError("Error: %s" % (e,))

        if debug_mode:
            print(traceback.format_exc(), file=sys.stderr)

        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
