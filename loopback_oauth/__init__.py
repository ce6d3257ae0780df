"""Loopback redirect capture for desktop OAuth authorization-code flows."""

__version__ = "1.2.0"
__author__ = "Maxime Lamothe-Brassard ( Refraction Point, Inc )"
__author_email__ = "maxime@refractionpoint.com"
__license__ = "Apache v2"
__copyright__ = "Copyright (c) 2020 Refraction Point, Inc"

from .outcome import CallbackOutcome
from .request_parser import parse_callback_request, percent_decode
from .pages import render_success, render_error
from .oauth_server import reserve_port, await_callback, wait_for_callback, ListenerSession
from .utils import LoopbackOAuthException
from .utils import NoPortAvailable, BindError, CallbackTimeout, ChannelClosed, ConfigError
