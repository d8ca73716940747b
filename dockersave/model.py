"""Typed views of registry documents.

The registry speaks JSON; these classes decode exactly the fields we use and
raise ManifestDecodeFailed when one is missing or has the wrong type, rather
than failing later with a KeyError halfway through a pull.
"""

from dockersave import digest as digest_util
from dockersave import errors


def _require(d, key, kind, where):
    if not isinstance(d, dict):
        raise errors.ManifestDecodeFailed(
            '%s is not a JSON object' % where)
    if key not in d:
        raise errors.ManifestDecodeFailed(
            '%s is missing the "%s" field' % (where, key))
    value = d[key]
    if kind is int and isinstance(value, bool):
        value = None
    if not isinstance(value, kind):
        raise errors.ManifestDecodeFailed(
            '%s field "%s" has the wrong type' % (where, key))
    return value


class Layer(object):
    """A blob descriptor: mediaType, size and digest.

    materialized_id is the legacy layer ID assigned by the pipeline once the
    diff-IDs are known. It is never serialized.
    """

    def __init__(self, media_type, size, digest):
        self.media_type = media_type
        self.size = size
        self.digest = digest
        self.materialized_id = None

    @classmethod
    def from_dict(cls, d, where='layer'):
        digest = _require(d, 'digest', str, where)
        # An empty digest is left for the materializer to reject per layer
        if digest and not digest_util.is_valid_digest(digest):
            raise errors.ManifestDecodeFailed(
                '%s field "digest" is not a valid digest: %r'
                % (where, digest))
        size = d.get('size', 0)
        if isinstance(size, bool) or not isinstance(size, int):
            raise errors.ManifestDecodeFailed(
                '%s field "size" has the wrong type' % where)
        return cls(d.get('mediaType', ''), size, digest)

    def to_dict(self):
        return {
            'mediaType': self.media_type,
            'size': self.size,
            'digest': self.digest
        }

    def __repr__(self):
        return 'Layer(%s, %s, %d)' % (self.media_type, self.digest, self.size)


class Platform(object):
    def __init__(self, os, architecture, variant=''):
        self.os = os
        self.architecture = architecture
        self.variant = variant

    @classmethod
    def from_dict(cls, d):
        if not isinstance(d, dict):
            return cls('', '')
        return cls(d.get('os', ''), d.get('architecture', ''),
                   d.get('variant', ''))

    def matches(self, os, architecture):
        return self.os == os and self.architecture == architecture

    def __str__(self):
        if self.variant:
            return '%s on %s %s' % (self.os, self.architecture, self.variant)
        return '%s on %s' % (self.os, self.architecture)


class ManifestListEntry(Layer):
    """A descriptor for a platform specific manifest inside a list."""

    def __init__(self, media_type, size, digest, platform):
        super(ManifestListEntry, self).__init__(media_type, size, digest)
        self.platform = platform

    @classmethod
    def from_dict(cls, d, where='manifest list entry'):
        layer = Layer.from_dict(d, where=where)
        return cls(layer.media_type, layer.size, layer.digest,
                   Platform.from_dict(d.get('platform')))


class Manifest(object):
    """A single, platform specific image manifest."""

    def __init__(self, schema_version, media_type, config, layers):
        self.schema_version = schema_version
        self.media_type = media_type
        self.config = config
        self.layers = layers

    @classmethod
    def from_dict(cls, d):
        config = Layer.from_dict(
            _require(d, 'config', dict, 'manifest'), where='manifest config')
        layers = d.get('layers') or []
        if not isinstance(layers, list):
            raise errors.ManifestDecodeFailed(
                'manifest field "layers" has the wrong type')
        return cls(_require(d, 'schemaVersion', int, 'manifest'),
                   d.get('mediaType', ''),
                   config,
                   [Layer.from_dict(layer, where='manifest layer %d' % i)
                    for i, layer in enumerate(layers)])

    def to_dict(self):
        return {
            'schemaVersion': self.schema_version,
            'mediaType': self.media_type,
            'config': self.config.to_dict(),
            'layers': [layer.to_dict() for layer in self.layers]
        }


class ManifestList(object):
    def __init__(self, schema_version, media_type, manifests):
        self.schema_version = schema_version
        self.media_type = media_type
        self.manifests = manifests

    @classmethod
    def from_dict(cls, d):
        manifests = _require(d, 'manifests', list, 'manifest list')
        return cls(d.get('schemaVersion', 0),
                   d.get('mediaType', ''),
                   [ManifestListEntry.from_dict(m) for m in manifests])


class AuthToken(object):
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return '%s...' % self.value[:10]

    __repr__ = __str__
