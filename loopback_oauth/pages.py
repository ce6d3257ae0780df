"""
HTML pages shown in the browser once the redirect has been captured.

Neither page ever contains the authorization code. Everything interpolated
into the error page comes from the redirect's query string and is escaped.
"""

import html
from typing import Optional

from .constants import DEFAULT_APP_NAME


_PAGE_STYLE = """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }

        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #00030C;
            color: #ffffff;
            min-height: 100vh;
            display: flex;
            align-items: center;
            justify-content: center;
        }

        .container {
            text-align: center;
            padding: 60px 40px;
            background: rgba(255, 255, 255, 0.05);
            border: 1px solid rgba(255, 255, 255, 0.1);
            border-radius: 16px;
            box-shadow: 0 8px 32px rgba(0, 0, 0, 0.3);
            max-width: 500px;
            width: 90%;
        }

        .icon {
            width: 80px;
            height: 80px;
            margin: 0 auto 30px;
            border-radius: 50%;
            display: flex;
            align-items: center;
            justify-content: center;
            font-size: 40px;
            font-weight: bold;
        }

        .icon.success {
            background: linear-gradient(135deg, #4A90E2 0%, #A74AE2 100%);
        }

        .icon.failure {
            background: linear-gradient(135deg, #E24A4A 0%, #F02463 100%);
        }

        .title {
            font-size: 28px;
            font-weight: 500;
            margin-bottom: 16px;
        }

        .message {
            font-size: 16px;
            color: rgba(255, 255, 255, 0.7);
            line-height: 1.6;
        }

        .error-message {
            font-size: 14px;
            color: #F02463;
            margin: 24px 0 8px;
            padding: 12px 20px;
            background: rgba(240, 36, 99, 0.1);
            border: 1px solid rgba(240, 36, 99, 0.2);
            border-radius: 8px;
            font-family: 'Courier New', monospace;
            word-break: break-word;
        }

        .error-description {
            font-size: 14px;
            color: rgba(255, 255, 255, 0.6);
        }
"""

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>{style}</style>
</head>
<body>
    <div class="container">
{content}
    </div>
</body>
</html>"""


def _render_page(title: str, content: str) -> str:
    return _PAGE_TEMPLATE.format(title=title, style=_PAGE_STYLE, content=content)


def render_success(app_name: Optional[str] = None) -> str:
    """
    Render the page shown after a redirect carrying an authorization code.

    Args:
        app_name: Application the user is told to return to.

    Returns:
        The HTML document.
    """
    appName = html.escape(app_name or DEFAULT_APP_NAME)
    content = f"""        <div class="icon success">&#10003;</div>
        <h1 class="title">Authentication Successful</h1>
        <p class="message">You can close this window and return to {appName}.</p>"""
    return _render_page("Authentication Successful", content)


def render_error(message: str, description: Optional[str] = None, app_name: Optional[str] = None) -> str:
    """
    Render the page shown when the redirect did not carry a code.

    Args:
        message: Error reported by the provider, or a parsing diagnostic.
        description: Optional human readable detail (error_description).
        app_name: Application the user is told to return to.

    Returns:
        The HTML document, with message and description shown as plain text.
    """
    appName = html.escape(app_name or DEFAULT_APP_NAME)
    content = f"""        <div class="icon failure">&#10005;</div>
        <h1 class="title">Authentication Failed</h1>
        <p class="message">Please close this window, return to {appName} and try again.</p>
        <div class="error-message">{html.escape(message)}</div>"""
    if description:
        content += f"""
        <p class="error-description">{html.escape(description)}</p>"""
    return _render_page("Authentication Failed", content)
