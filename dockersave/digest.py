"""Digest and media type helpers.

Nothing in here touches the network or the file system. Filenames are a pure
function of a layer's media type and digest.
"""

import os
import re

from dockersave import compression
from dockersave import constants


# <algorithm>:<hex>, the hex part also names files and directories on disk
DIGEST_RE = re.compile(r'[a-z0-9]+(?:[+._-][a-z0-9]+)*:[a-f0-9]+')


def split_digest(digest):
    """Split '<algorithm>:<hex>' into its two halves.

    A digest without an algorithm prefix is returned with an empty algorithm.
    """
    if ':' not in digest:
        return '', digest
    algorithm, hexdigest = digest.split(':', 1)
    return algorithm, hexdigest


def is_valid_digest(digest):
    return bool(DIGEST_RE.fullmatch(digest or ''))


def digest_hex(digest):
    return split_digest(digest)[1]


def short_id(digest, length=10):
    """Short form used in log lines, like the first ten hex characters."""
    return digest_hex(digest)[:length]


def is_gzip_layer(layer):
    return (compression.detect_compression_from_media_type(layer.media_type)
            == constants.COMPRESSION_GZIP)


def filename_for(layer):
    """The basename a blob is written to.

    gzip-encoded blobs are filesystem layers and always become layer.tar.
    Everything else (in practice the image config) is named after the hex
    part of its digest.
    """
    if is_gzip_layer(layer):
        return constants.LEGACY_LAYER_FILE
    return '%s.json' % digest_hex(layer.digest)


def target_path(layer, output_dir, legacy_id=None):
    """Full path a blob is written to under output_dir.

    Layer tarballs live in a directory named after their legacy ID, config
    blobs sit directly in output_dir.
    """
    if is_gzip_layer(layer):
        return os.path.join(output_dir, legacy_id, filename_for(layer))
    return os.path.join(output_dir, filename_for(layer))
