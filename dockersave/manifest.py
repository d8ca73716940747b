# Manifest resolution for a v2 registry.

# https://docs.docker.com/registry/spec/manifest-v2-2/ documents the image manifest
# format, noting that the response format you get back varies based on what you have
# in your accept header for the request. We dispatch on the content type of the
# reply rather than trusting our own accept header, so registries which hand back
# a manifest list for a tag cost one extra round trip.

import logging

import requests

from dockersave import constants
from dockersave import errors
from dockersave import model
from dockersave import util

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.INFO)


def _content_type(r):
    # Drop parameters such as "; charset=utf-8"
    return r.headers.get('Content-Type', '').split(';')[0].strip()


def _decode(r, cls):
    try:
        d = r.json()
    except ValueError as e:
        raise errors.ManifestDecodeFailed(
            'Failed to decode %s: %s' % (cls.__name__, e))
    return cls.from_dict(d)


def select_platform(manifest_list, os, architecture):
    """Pick the manifest list entry for os / architecture.

    Every entry is examined; if more than one matches, the last one in list
    order is returned.

    Raises:
        EmptyManifestList: If the list has no entries.
        NoMatchingPlatform: If no entry matches.
    """
    if not manifest_list.manifests:
        raise errors.EmptyManifestList('Manifest list is empty')

    selected = None
    for entry in manifest_list.manifests:
        LOG.info('Found manifest for %s' % entry.platform)
        if entry.platform.matches(os, architecture):
            selected = entry

    if not selected:
        raise errors.NoMatchingPlatform(
            'No matching manifest for (%s / %s)' % (os, architecture))
    return selected


class ManifestResolver(object):
    def __init__(self, config, session):
        self.config = config
        self.session = session

    def _get(self, image, reference, accept):
        headers = {'Accept': accept}
        headers.update(self.session.headers())
        url = self.config.url(image, 'manifests', reference)
        try:
            return util.request_url('GET', url, headers=headers,
                                    timeout=self.config.timeout)
        except util.APIException as e:
            raise errors.ManifestFetchFailed(
                'Manifest request for %s failed with HTTP %s'
                % (reference, util.status_of(e)))
        except requests.exceptions.RequestException as e:
            raise errors.ManifestFetchFailed(
                'Failed to download manifest %s: %s' % (reference, e))

    def resolve(self, image=None, reference=None, os=None, architecture=None):
        """Return the concrete Manifest for image:reference on a platform.

        Arguments default to the values held in the session configuration.
        """
        image = image or self.config.image
        reference = reference or self.config.reference
        os = os or self.config.os
        architecture = architecture or self.config.architecture

        LOG.info('Fetching manifest %s:%s' % (image, reference))
        r = self._get(image, reference, '%s,%s' % (
            constants.MEDIA_TYPE_DOCKER_MANIFEST_V2,
            constants.MEDIA_TYPE_DOCKER_MANIFEST_LIST_V2))

        content_type = _content_type(r)
        if content_type == constants.MEDIA_TYPE_DOCKER_MANIFEST_LIST_V2:
            manifest_list = _decode(r, model.ManifestList)
            entry = select_platform(manifest_list, os, architecture)

            LOG.info('Fetching matching manifest %s' % entry.digest)
            r = self._get(image, entry.digest, entry.media_type)
            manifest = _decode(r, model.Manifest)

        elif content_type == constants.MEDIA_TYPE_DOCKER_MANIFEST_V2:
            manifest = _decode(r, model.Manifest)

        else:
            raise errors.UnsupportedContentType(
                'Unknown manifest content type %s' % content_type)

        LOG.info('Manifest lists %d image layers' % len(manifest.layers))
        return manifest
