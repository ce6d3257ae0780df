import sys
import traceback


def _printOutcome( outcome, asJson ):
    from .term_utils import dumpOutcome, prettyFormatOutcome

    if asJson:
        print( dumpOutcome( outcome ) )
    else:
        print( prettyFormatOutcome( outcome ) )


def _expandAuthUrl( template, redirectUri, port ):
    """
    Expand the {redirect_uri} and {port} placeholders of an authorization URL.

    Args:
        template (str): URL given on the command line.
        redirectUri (str): loopback redirect URI, URL-encoded when inserted.
        port (int): reserved port.

    Returns:
        the authorization URL to open in the browser.
    """
    import urllib.parse

    return template.replace( '{redirect_uri}', urllib.parse.quote( redirectUri, safe = '' ) ).replace( '{port}', str( port ) )


def cli( args ):
    """
    Command line interface for the loopback OAuth listener.

    Args:
        args (list): list of CLI arguments to parse.
    """
    import argparse
    import webbrowser

    from .utils import load_config
    from .term_utils import getConsole

    parser = argparse.ArgumentParser( prog = 'loopback-oauth' )
    parser.add_argument( 'action',
                         type = str,
                         help = 'action to perform, currently supported "version" (print the version), "reserve-port" (print a free loopback port), "wait" (capture one redirect on a given port), "capture" (reserve a port, open the authorization URL and capture the redirect)' )

    # Hack around a bit so that we can pass the help
    # to the proper sub-command line.
    rootArgs = args[ 1: 2 ]

    # Everything after the command name and the action name that is passed
    # to the action argument parser.
    # For example: loopback-oauth wait --port 8085 -> ["--port", "8085"]
    actionArgs = args[ 2: ]
    args = parser.parse_args( rootArgs )

    action = args.action.lower()
    if action == 'version':
        from . import __version__
        print( "Loopback OAuth Version %s" % ( __version__, ) )
    elif action == 'reserve-port':
        from .oauth_server import reserve_port

        conf = load_config()
        print( reserve_port( preferred_ports = conf[ 'preferred_ports' ] ) )
    elif action in ( 'wait', 'capture' ):
        from .oauth_server import reserve_port, wait_for_callback

        conf = load_config()

        parser = argparse.ArgumentParser( prog = 'loopback-oauth %s' % ( action, ) )
        if action == 'wait':
            parser.add_argument( '--port',
                                 type = int,
                                 required = True,
                                 help = 'loopback port to listen on' )
        else:
            parser.add_argument( '--url',
                                 type = str,
                                 default = None,
                                 help = 'authorization URL to open, "{redirect_uri}" and "{port}" are replaced' )
            parser.add_argument( '--no-browser',
                                 action = 'store_true',
                                 help = 'print the URL instead of opening the browser' )
        parser.add_argument( '--timeout',
                             type = float,
                             default = conf[ 'timeout' ],
                             help = 'seconds to wait for the redirect (default: %(default)s)' )
        parser.add_argument( '--json',
                             action = 'store_true',
                             help = 'print the outcome as compact JSON' )
        actionArgs = parser.parse_args( actionArgs )

        if actionArgs.timeout <= 0:
            parser.error( 'timeout must be positive' )

        console = getConsole()

        if action == 'wait':
            port = actionArgs.port
        else:
            port = reserve_port( preferred_ports = conf[ 'preferred_ports' ] )
            redirectUri = 'http://127.0.0.1:%d%s' % ( port, conf[ 'redirect_path' ] )
            console.print( "Redirect URI: [bold]%s[/bold]" % ( redirectUri, ) )
            if actionArgs.url:
                authUrl = _expandAuthUrl( actionArgs.url, redirectUri, port )
                if actionArgs.no_browser:
                    console.print( "\nPlease visit this URL to authenticate:\n%s\n" % ( authUrl, ) )
                else:
                    console.print( "Opening browser for authentication..." )
                    if not webbrowser.open( authUrl ):
                        console.print( "\nCould not open browser. Please visit this URL:\n%s\n" % ( authUrl, ) )

        console.print( "Waiting for the redirect on port %d..." % ( port, ) )
        outcome = wait_for_callback( port, actionArgs.timeout, app_name = conf[ 'app_name' ] )
        _printOutcome( outcome, actionArgs.json )
        if not outcome.is_success:
            sys.exit( 1 )
    else:
        raise Exception( 'unknown action: %s' % ( args.action, ) )


def main():
    args = sys.argv

    # Hack since we don't have access to parsed args here and parsing itself may fail
    debug_mode = False
    if "--debug" in args:
        debug_mode = True
        args.remove("--debug")

    if debug_mode:
        import logging
        logging.basicConfig( level = logging.DEBUG, format = '%(asctime)s %(name)s %(levelname)s: %(message)s' )

    try:
        cli(args)
    except Exception as e:
        from termcolor import colored
        from .term_utils import useColors

        prefix = colored( "Error:", "red", attrs = [ "bold" ] ) if useColors() else "Error:"
        print(prefix, e, file=sys.stderr)

        if debug_mode:
            print(traceback.format_exc(), file=sys.stderr)

        return 1

if __name__ == "__main__":
    sys.exit( main() )
