"""Session configuration and image reference parsing.

A SessionConfig is built once by the command line layer and handed to every
component explicitly. The only fields written after construction are the
token endpoint and service name discovered from the registry challenge, and
those may only be set once.
"""

from collections import namedtuple
import os

from dockersave import constants
from dockersave import errors


ImageReference = namedtuple('ImageReference', ['image', 'reference'])


def parse_image_reference(image_ref):
    """Normalize 'image[:tag]' or 'image@digest' into (image, reference).

    Handles formats like:
        busybox              -> ('library/busybox', 'latest')
        busybox:1.36         -> ('library/busybox', '1.36')
        swaggerapi/editor:v4 -> ('swaggerapi/editor', 'v4')
        alpine@sha256:abc... -> ('library/alpine', 'sha256:abc...')

    Raises:
        ConfigError: If the reference is empty or has an empty part.
    """
    if not image_ref:
        raise errors.ConfigError('Not a valid image reference: %r' % image_ref)

    if '@' in image_ref:
        image, reference = image_ref.split('@', 1)
    else:
        # Only a colon after the last slash separates a tag
        last_colon = image_ref.rfind(':')
        if last_colon > image_ref.rfind('/'):
            image = image_ref[:last_colon]
            reference = image_ref[last_colon + 1:]
        else:
            image = image_ref
            reference = constants.DEFAULT_TAG

    image = image.strip('/')
    if not image or not reference:
        raise errors.ConfigError('Not a valid image reference: %r' % image_ref)

    if '/' not in image:
        image = '%s/%s' % (constants.DEFAULT_NAMESPACE, image)

    return ImageReference(image, reference)


def registry_base_url(registry, secure=True):
    """Turn a registry host (or a full URL) into a base URL."""
    if '://' in registry:
        return registry.rstrip('/')
    moniker = 'https'
    if not secure:
        moniker = 'http'
    return '%s://%s' % (moniker, registry.rstrip('/'))


class SessionConfig(object):
    def __init__(self, registry_url, image, reference,
                 os=constants.DEFAULT_OS,
                 architecture=constants.DEFAULT_ARCHITECTURE,
                 output_dir=None, verbose=False,
                 timeout=constants.DEFAULT_TIMEOUT):
        self.registry_url = registry_url.rstrip('/')
        self.image = image
        self.reference = reference
        self.os = os
        self.architecture = architecture
        self.output_dir = output_dir or self.default_output_dir(image)
        self.verbose = verbose
        self.timeout = timeout

        self._auth_url = None
        self._service = None

    @staticmethod
    def default_output_dir(image):
        return os.path.basename(image.rstrip('/'))

    @classmethod
    def from_image_reference(cls, registry_url, image_ref, **kwargs):
        ref = parse_image_reference(image_ref)
        return cls(registry_url, ref.image, ref.reference, **kwargs)

    @property
    def auth_url(self):
        return self._auth_url

    @property
    def service(self):
        return self._service

    def record_challenge(self, auth_url, service):
        """Store the discovered token endpoint. Write-once."""
        if self._auth_url is not None and (
                self._auth_url != auth_url or self._service != service):
            raise errors.ConfigError(
                'Token endpoint already discovered as %s (service %s)'
                % (self._auth_url, self._service))
        self._auth_url = auth_url
        self._service = service

    def url(self, *parts):
        return '/'.join([self.registry_url, 'v2'] + list(parts))

    def blob_url(self, digest):
        return self.url(self.image, 'blobs', digest)

    def as_dict(self):
        return {
            'registry': self.registry_url,
            'image': self.image,
            'reference': self.reference,
            'os': self.os,
            'architecture': self.architecture,
            'output': self.output_dir,
            'timeout': self.timeout
        }
