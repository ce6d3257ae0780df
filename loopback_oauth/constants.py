import os

# Path to the configuration file. Can be overriden for tests.
CONFIG_FILE_PATH = os.environ.get( 'LOOPBACK_OAUTH_CONFIG', os.path.expanduser( '~/.loopback_oauth' ) )

# Environment override for the callback timeout, in seconds.
TIMEOUT_ENV_VAR = 'LOOPBACK_OAUTH_TIMEOUT'

# The listener only ever binds the IPv4 loopback address.
LOOPBACK_HOST = '127.0.0.1'

# OAuth-related constants
OAUTH_CALLBACK_TIMEOUT = 300  # 5 minutes
DEFAULT_REDIRECT_PATH = '/callback'
DEFAULT_APP_NAME = 'the application'

# Maximum number of bytes read from a single callback connection.
READ_BUFFER_SIZE = 4096

# A connection that sends nothing for this long is dropped and the
# listener goes back to accepting (browser preconnects, port scanners).
CONNECTION_READ_TIMEOUT = 5
