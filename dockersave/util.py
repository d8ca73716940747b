import json
import logging
from pbr.version import VersionInfo
import requests

from dockersave import constants


LOG = logging.getLogger(__name__)

SENSITIVE_HEADERS = ('authorization',)


class APIException(Exception):
    pass


class UnauthorizedException(APIException):
    pass


STATUS_CODES_TO_ERRORS = {
    401: UnauthorizedException
}


def get_user_agent():
    try:
        version = VersionInfo('dockersave').version_string()
    except Exception:
        version = '0.0.0'
    return 'Mozilla/5.0 (Linux x86_64) dockersave/%s' % version


def _loggable_header(name, value):
    if name.lower() in SENSITIVE_HEADERS:
        return '%s...' % value[:17]
    return value


def request_url(method, url, headers=None, params=None, stream=False,
                timeout=constants.DEFAULT_TIMEOUT):
    """Issue a single HTTP request and map failures to exceptions.

    Any status outside of 2xx raises APIException (or UnauthorizedException
    for a 401). The exception args are (message, method, url, status_code,
    text, headers) so callers can inspect challenge headers.
    """
    if not headers:
        headers = {}
    headers.update({'User-Agent': get_user_agent()})
    r = requests.request(method, url,
                         headers=headers,
                         params=params,
                         stream=stream,
                         timeout=timeout)

    LOG.debug('-------------------------------------------------------')
    LOG.debug('API client requested: %s %s (stream=%s)'
              % (method, url, stream))
    if params:
        LOG.debug('Params: %s' % params)
    for h in headers:
        LOG.debug('Header: %s = %s' % (h, _loggable_header(h, headers[h])))
    LOG.debug('API client response: code = %s' % r.status_code)
    for h in r.headers:
        LOG.debug('Header: %s = %s' % (h, r.headers[h]))
    if not stream:
        if r.text:
            try:
                LOG.debug('Data:\n    %s'
                          % ('\n    '.join(json.dumps(json.loads(r.text),
                                                      indent=4,
                                                      sort_keys=True).split('\n'))))
            except ValueError:
                LOG.debug('Text:\n    %s'
                          % ('\n    '.join(r.text.split('\n'))))
    else:
        LOG.debug('Result content not logged for streaming requests')
    LOG.debug('-------------------------------------------------------')

    if r.status_code < 200 or r.status_code >= 300:
        text = r.text
        r.close()
        exc_class = STATUS_CODES_TO_ERRORS.get(r.status_code, APIException)
        raise exc_class(
            'API request failed', method, url, r.status_code, text, r.headers)
    return r


def status_of(exc):
    """Return the HTTP status carried by an APIException, or None."""
    if len(exc.args) > 3:
        return exc.args[3]
    return None
