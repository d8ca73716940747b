"""Error kinds raised while pulling an image.

Everything derives from DockerSaveError. Errors raised before any layer is
written (configuration, authentication, manifest resolution, diff-ID
extraction) abort the run. MaterializeError and its subclasses are scoped to
a single blob; the pipeline logs them and moves on to the next layer.
"""


class DockerSaveError(Exception):
    pass


class ConfigError(DockerSaveError):
    pass


class AuthDiscoveryError(DockerSaveError):
    """The /v2/ probe did not yield a usable Bearer challenge."""
    pass


class AuthError(DockerSaveError):
    """The token exchange failed."""
    pass


class ResolveError(DockerSaveError):
    pass


class EmptyManifestList(ResolveError):
    pass


class NoMatchingPlatform(ResolveError):
    pass


class UnsupportedContentType(ResolveError):
    pass


class ManifestFetchFailed(ResolveError):
    pass


class ManifestDecodeFailed(ResolveError):
    pass


class MaterializeError(DockerSaveError):
    pass


class EmptyDigest(MaterializeError):
    pass


class MissingLegacyID(MaterializeError):
    pass


class BlobFetchFailed(MaterializeError):
    pass


class DecompressionFailed(MaterializeError):
    pass


class WriteFailed(MaterializeError):
    pass


class DiffIDError(DockerSaveError):
    pass


class LayerCountMismatch(DiffIDError):
    pass
