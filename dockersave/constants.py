# Docker manifest media types
MEDIA_TYPE_DOCKER_MANIFEST_V2 = \
    'application/vnd.docker.distribution.manifest.v2+json'
MEDIA_TYPE_DOCKER_MANIFEST_LIST_V2 = \
    'application/vnd.docker.distribution.manifest.list.v2+json'
MEDIA_TYPE_DOCKER_CONFIG = 'application/vnd.docker.container.image.v1+json'

# Docker layer media types
MEDIA_TYPE_DOCKER_LAYER_GZIP = \
    'application/vnd.docker.image.rootfs.diff.tar.gzip'

# Compression type constants
COMPRESSION_GZIP = 'gzip'
COMPRESSION_NONE = 'none'

# Registry defaults
DEFAULT_REGISTRY = 'registry-1.docker.io'
DEFAULT_NAMESPACE = 'library'
DEFAULT_TAG = 'latest'
DEFAULT_OS = 'linux'
DEFAULT_ARCHITECTURE = 'amd64'
DEFAULT_TIMEOUT = 60

# Legacy docker-save layout
LEGACY_VERSION = '1.0'
LEGACY_VERSION_FILE = 'VERSION'
LEGACY_JSON_FILE = 'json'
LEGACY_LAYER_FILE = 'layer.tar'
MANIFEST_FILE = 'manifest.json'

CHUNK_SIZE = 8192
