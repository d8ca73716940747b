# Anonymous Bearer token authentication against a v2 registry.
#
# https://distribution.github.io/distribution/spec/auth/token/ documents the
# flow: probe /v2/, read the WWW-Authenticate challenge from the 401, then ask
# the token service named in the challenge for a pull token scoped to the
# repository.

import logging
import re

import requests

from dockersave import errors
from dockersave import model
from dockersave import util

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.INFO)

# key=value or key="quoted, value" with backslash escapes
AUTH_PARAM_RE = re.compile(
    r'\s*([A-Za-z0-9_-]+)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^,\s"]*))\s*(?:,|$)')
ESCAPE_RE = re.compile(r'\\(.)')


def parse_www_authenticate(header):
    """Parse a WWW-Authenticate header into (scheme, params).

    Parameter names are lower cased, quoted values are unquoted. The order of
    parameters does not matter.

    Raises:
        AuthDiscoveryError: If the header has no scheme or a parameter list
            that cannot be parsed.
    """
    header = (header or '').strip()
    if not header:
        raise errors.AuthDiscoveryError('Empty authenticate header')

    parts = header.split(None, 1)
    scheme = parts[0]
    rest = parts[1] if len(parts) > 1 else ''

    params = {}
    pos = 0
    while pos < len(rest):
        m = AUTH_PARAM_RE.match(rest, pos)
        if not m or m.end() == pos:
            raise errors.AuthDiscoveryError(
                'Malformed authenticate header: %s' % header)
        key = m.group(1).lower()
        if m.group(2) is not None:
            value = ESCAPE_RE.sub(r'\1', m.group(2))
        else:
            value = m.group(3)
        params[key] = value
        pos = m.end()

    return scheme, params


class AuthSession(object):
    """Holds the token for one run against one registry.

    If the registry never challenges us the session stays anonymous and
    headers() returns nothing, so no Authorization header is sent at all.
    """

    def __init__(self, config):
        self.config = config
        self.token = None
        self.challenged = False

    def discover(self):
        url = self.config.url('')
        LOG.info('Probing %s for an authentication challenge' % url)
        try:
            r = util.request_url('GET', url, timeout=self.config.timeout)
            r.close()
            LOG.info('Registry did not issue a challenge, using anonymous '
                     'access')
            return
        except util.UnauthorizedException as e:
            header = e.args[5].get('Www-Authenticate', '')
        except util.APIException as e:
            raise errors.AuthDiscoveryError(
                'Registry probe returned HTTP %s' % util.status_of(e))
        except requests.exceptions.RequestException as e:
            raise errors.AuthDiscoveryError(
                'Failed to reach registry: %s' % e)

        if not header:
            raise errors.AuthDiscoveryError(
                'Registry returned 401 without an authenticate header')

        scheme, params = parse_www_authenticate(header)
        if scheme.lower() != 'bearer':
            raise errors.AuthDiscoveryError(
                'Unsupported authentication scheme %s' % scheme)
        if not params.get('realm') or not params.get('service'):
            raise errors.AuthDiscoveryError(
                'Authenticate header lacks realm or service: %s' % header)

        self.config.record_challenge(params['realm'], params['service'])
        self.challenged = True
        LOG.info('Token service is %s (service %s)'
                 % (params['realm'], params['service']))

    def authenticate(self, scope_repository):
        if not self.config.auth_url or not self.config.service:
            raise errors.AuthError(
                'Token endpoint has not been discovered')
        if not scope_repository:
            raise errors.AuthError('Repository scope cannot be empty')

        params = {
            'service': self.config.service,
            'scope': 'repository:%s:pull' % scope_repository
        }
        LOG.info('Fetching access token from %s' % self.config.auth_url)
        try:
            r = util.request_url('GET', self.config.auth_url, params=params,
                                 timeout=self.config.timeout)
        except util.APIException as e:
            raise errors.AuthError(
                'Token request failed with HTTP %s' % util.status_of(e))
        except requests.exceptions.RequestException as e:
            raise errors.AuthError('Failed to get token: %s' % e)

        try:
            body = r.json()
        except ValueError as e:
            raise errors.AuthError('Failed to read token response: %s' % e)

        value = None
        if isinstance(body, dict):
            value = body.get('token') or body.get('access_token')
        if not value or not isinstance(value, str):
            raise errors.AuthError('Token response did not contain a token')

        self.token = model.AuthToken(value)
        LOG.debug('token: %s' % self.token)
        return self.token

    def headers(self):
        if not self.token:
            return {}
        return {'Authorization': 'Bearer %s' % self.token.value}
