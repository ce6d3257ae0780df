import os
import yaml

from .constants import CONFIG_FILE_PATH, TIMEOUT_ENV_VAR
from .constants import OAUTH_CALLBACK_TIMEOUT, DEFAULT_REDIRECT_PATH, DEFAULT_APP_NAME


class LoopbackOAuthException ( Exception ):
    '''Exception type used for all errors raised by the loopback OAuth listener.'''

    def __init__(self, message):
        """
        Initialize the exception with a message.

        Args:
            message (str): The error message.
        """
        super().__init__(message)
        self.message = message


class NoPortAvailable ( LoopbackOAuthException ):
    '''No loopback port could be reserved.'''

    def __init__(self, message="No available port found"):
        super().__init__(message)


class BindError ( LoopbackOAuthException ):
    '''The listener could not bind the requested port.'''

    def __init__(self, port, cause, host='127.0.0.1'):
        super().__init__(f"Failed to bind to {host}:{port}: {cause}")
        self.port = port
        self.cause = cause


class CallbackTimeout ( LoopbackOAuthException ):
    '''No redirect was received before the deadline.'''

    def __init__(self, timeout_secs):
        super().__init__(f"OAuth callback timed out after {timeout_secs} seconds")
        self.timeout_secs = timeout_secs


class ChannelClosed ( LoopbackOAuthException ):
    '''The accept task ended without ever delivering an outcome.'''

    def __init__(self, message="OAuth callback channel closed unexpectedly"):
        super().__init__(message)


class ConfigError ( LoopbackOAuthException ):
    '''The configuration file or an environment override is invalid.'''
    pass


def _defaultConfig():
    return {
        'timeout': OAUTH_CALLBACK_TIMEOUT,
        'app_name': DEFAULT_APP_NAME,
        'redirect_path': DEFAULT_REDIRECT_PATH,
        'preferred_ports': [],
    }


def _parseTimeout( value, source ):
    try:
        timeout = float( value )
    except ( TypeError, ValueError ):
        raise ConfigError( f"Invalid timeout in {source}: {value!r}" )
    if timeout <= 0:
        raise ConfigError( f"Timeout in {source} must be positive, got {value!r}" )
    if timeout.is_integer():
        timeout = int( timeout )
    return timeout


def load_config():
    """
    Load the CLI configuration from the config file and the environment.

    Missing keys fall back to defaults, a missing file means all defaults.
    The LOOPBACK_OAUTH_TIMEOUT environment variable wins over the file.

    Returns:
        dict: with keys timeout, app_name, redirect_path and preferred_ports.

    Raises:
        ConfigError: If the file is not valid YAML or a value is invalid.
    """
    conf = _defaultConfig()

    try:
        with open( CONFIG_FILE_PATH, 'rb' ) as f:
            fileConf = yaml.safe_load( f.read() )
    except FileNotFoundError:
        fileConf = None
    except yaml.YAMLError as e:
        raise ConfigError( f"Invalid config file {CONFIG_FILE_PATH}: {e}" )

    if fileConf is None:
        fileConf = {}
    if not isinstance( fileConf, dict ):
        raise ConfigError( f"Config file {CONFIG_FILE_PATH} must contain a mapping" )

    if 'timeout' in fileConf:
        conf[ 'timeout' ] = _parseTimeout( fileConf[ 'timeout' ], CONFIG_FILE_PATH )

    if 'app_name' in fileConf:
        conf[ 'app_name' ] = str( fileConf[ 'app_name' ] )

    if 'redirect_path' in fileConf:
        path = str( fileConf[ 'redirect_path' ] )
        if not path.startswith( '/' ):
            path = '/' + path
        conf[ 'redirect_path' ] = path

    if 'preferred_ports' in fileConf:
        ports = fileConf[ 'preferred_ports' ] or []
        if not isinstance( ports, list ):
            raise ConfigError( f"preferred_ports in {CONFIG_FILE_PATH} must be a list" )
        try:
            ports = [ int( p ) for p in ports ]
        except ( TypeError, ValueError ):
            raise ConfigError( f"Invalid port in preferred_ports: {ports!r}" )
        for p in ports:
            if not 0 < p < 65536:
                raise ConfigError( f"Port out of range in preferred_ports: {p}" )
        conf[ 'preferred_ports' ] = ports

    envTimeout = os.environ.get( TIMEOUT_ENV_VAR, None )
    if envTimeout:
        conf[ 'timeout' ] = _parseTimeout( envTimeout, TIMEOUT_ENV_VAR )

    return conf
