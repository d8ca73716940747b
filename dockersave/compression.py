"""Decompression utilities for container image blobs.

Registry blobs are either gzip compressed layer tarballs or plain JSON
documents. Which one we are holding is decided from the media type alone.
"""

import zlib

from dockersave import constants


def detect_compression_from_media_type(media_type):
    """Detect compression format from a Docker media type.

    Args:
        media_type: Media type string from a manifest.

    Returns:
        COMPRESSION_GZIP if the media type ends in 'gzip', otherwise
        COMPRESSION_NONE.
    """
    if media_type and media_type.endswith('gzip'):
        return constants.COMPRESSION_GZIP
    return constants.COMPRESSION_NONE


class StreamingDecompressor:
    """Streaming decompressor for gzip or pass-through data.

    This class provides a unified interface for streaming decompression,
    allowing data to be decompressed chunk by chunk as it arrives.
    """

    def __init__(self, compression_type):
        """Initialize the decompressor.

        Args:
            compression_type: COMPRESSION_GZIP or COMPRESSION_NONE.

        Raises:
            ValueError: If compression_type is not supported.
        """
        self.compression_type = compression_type

        if compression_type == constants.COMPRESSION_GZIP:
            self._decompressor = self._new_gzip()
        elif compression_type == constants.COMPRESSION_NONE:
            self._decompressor = None
        else:
            raise ValueError(
                'Unsupported compression type: %s' % compression_type)

    @staticmethod
    def _new_gzip():
        # Use zlib with gzip header support (16 + MAX_WBITS)
        return zlib.decompressobj(16 + zlib.MAX_WBITS)

    def decompress(self, chunk):
        """Decompress a chunk of data.

        A gzip stream may be several members back to back; each one that
        follows a finished member is decompressed in turn.

        Raises:
            zlib.error: If the chunk is not valid gzip data.
        """
        if self._decompressor is None:
            return chunk

        out = [self._decompressor.decompress(chunk)]
        while self._decompressor.eof and self._decompressor.unused_data:
            pending = self._decompressor.unused_data
            self._decompressor = self._new_gzip()
            out.append(self._decompressor.decompress(pending))
        return b''.join(out)

    def flush(self):
        """Flush any remaining buffered data."""
        if self._decompressor is None:
            return b''
        return self._decompressor.flush()

    @property
    def complete(self):
        """True once the last compressed member has ended."""
        if self._decompressor is None:
            return True
        return self._decompressor.eof
