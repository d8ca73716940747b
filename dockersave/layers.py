"""Blob retrieval into the legacy docker-save layout.

A blob is either a gzip compressed layer tarball, which is decompressed on
the fly into <output>/<legacy id>/layer.tar, or the image config, which is
copied verbatim to <output>/<hex digest>.json. Nothing is buffered in memory
beyond a single chunk.
"""

import logging
import os
import time
import zlib

import requests
from requests.exceptions import ChunkedEncodingError, ConnectionError

from dockersave import compression
from dockersave import constants
from dockersave import digest as digest_util
from dockersave import errors
from dockersave import util

# Retry configuration
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2  # Exponential backoff: 2^attempt seconds

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.INFO)


class LayerMaterializer(object):
    def __init__(self, config, session, max_retries=None):
        self.config = config
        self.session = session
        if max_retries is None:
            max_retries = MAX_RETRIES
        self.max_retries = max_retries

    def _fetch(self, layer, accept):
        headers = {}
        if accept:
            headers['Accept'] = layer.media_type
        headers.update(self.session.headers())
        try:
            return util.request_url(
                'GET', self.config.blob_url(layer.digest),
                headers=headers, stream=True, timeout=self.config.timeout)
        except util.APIException as e:
            raise errors.BlobFetchFailed(
                'Blob %s request failed with HTTP %s'
                % (digest_util.short_id(layer.digest), util.status_of(e)))

    def _copy(self, r, layer, filename):
        d = compression.StreamingDecompressor(
            compression.detect_compression_from_media_type(layer.media_type))
        written = 0
        try:
            with open(filename, 'wb') as f:
                try:
                    for chunk in r.iter_content(constants.CHUNK_SIZE):
                        data = d.decompress(chunk)
                        f.write(data)
                        written += len(data)
                    remaining = d.flush()
                    if remaining:
                        f.write(remaining)
                        written += len(remaining)
                except zlib.error as e:
                    raise errors.DecompressionFailed(
                        'Failed to gunzip %s: %s'
                        % (digest_util.short_id(layer.digest), e))
        except requests.exceptions.RequestException:
            # These are OSErrors too, but belong to the transfer
            raise
        except OSError as e:
            raise errors.WriteFailed(
                'Failed to write %s: %s' % (filename, e))

        if not d.complete:
            raise errors.DecompressionFailed(
                'Compressed stream for %s ended early'
                % digest_util.short_id(layer.digest))
        return written

    def materialize(self, layer, output_dir=None, legacy_id=None):
        """Fetch one blob and write it under output_dir.

        Args:
            layer: The model.Layer to fetch.
            output_dir: Root of the docker-save layout. Defaults to the
                configured output directory.
            legacy_id: Directory name for gzip layers. Passing one also marks
                the blob as a layer, so its media type is sent as Accept.

        Returns:
            The number of (decompressed) bytes written.

        Raises:
            MaterializeError: One of EmptyDigest, MissingLegacyID,
                BlobFetchFailed, DecompressionFailed or WriteFailed.
        """
        output_dir = output_dir or self.config.output_dir
        if not layer.digest:
            raise errors.EmptyDigest('Layer digest is empty')
        if digest_util.is_gzip_layer(layer) and not legacy_id:
            raise errors.MissingLegacyID(
                'Layer %s has no legacy layer id'
                % digest_util.short_id(layer.digest))

        filename = digest_util.target_path(layer, output_dir, legacy_id)
        short = digest_util.short_id(layer.digest)
        LOG.info('Fetching blob %s (%d bytes)' % (layer.digest, layer.size))

        # Streaming downloads can fail mid-transfer, so those are retried.
        # Each attempt rewrites the file from the start.
        for attempt in range(self.max_retries + 1):
            try:
                r = self._fetch(layer, legacy_id is not None)
            except (ChunkedEncodingError, ConnectionError) as e:
                last_exception = e
            except requests.exceptions.RequestException as e:
                raise errors.BlobFetchFailed(
                    'Failed to download blob %s: %s' % (short, e))
            else:
                try:
                    written = self._copy(r, layer, filename)
                    LOG.info('Wrote %d bytes for %s to %s'
                             % (written, short, filename))
                    return written
                except (ChunkedEncodingError, ConnectionError) as e:
                    last_exception = e
                except requests.exceptions.RequestException as e:
                    raise errors.BlobFetchFailed(
                        'Failed to download blob %s: %s' % (short, e))
                finally:
                    r.close()

            if attempt < self.max_retries:
                wait_time = RETRY_BACKOFF_BASE ** attempt
                LOG.warning(
                    'Blob download failed (attempt %d/%d): %s. '
                    'Retrying in %d seconds...'
                    % (attempt + 1, self.max_retries + 1,
                       str(last_exception), wait_time))
                time.sleep(wait_time)

        raise errors.BlobFetchFailed(
            'Blob %s download failed after %d attempts: %s'
            % (short, self.max_retries + 1, last_exception))

    def materialize_config(self, manifest, output_dir=None):
        """Write the image config blob, returning its path."""
        output_dir = output_dir or self.config.output_dir
        self.materialize(manifest.config, output_dir)
        return os.path.join(output_dir, digest_util.filename_for(manifest.config))
