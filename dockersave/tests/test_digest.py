"""Tests for digest, filename and decompression helpers."""

import gzip
import os
import unittest
import zlib

from dockersave import compression
from dockersave import constants
from dockersave import digest as digest_util
from dockersave import model


HEX = 'a3ed95caeb02ffe68cdd9fd84406680ae93d633cb16422d00e8a7c22955b46d4'


class DigestTestCase(unittest.TestCase):
    def test_split_digest(self):
        self.assertEqual(('sha256', HEX),
                         digest_util.split_digest('sha256:%s' % HEX))

    def test_split_digest_without_algorithm(self):
        self.assertEqual(('', HEX), digest_util.split_digest(HEX))

    def test_short_id(self):
        self.assertEqual(HEX[:10], digest_util.short_id('sha256:%s' % HEX))

    def test_valid_digest(self):
        self.assertTrue(digest_util.is_valid_digest('sha256:%s' % HEX))
        self.assertTrue(digest_util.is_valid_digest('sha512:abc123'))

    def test_invalid_digest(self):
        """Test digests which would not be safe as file names are refused."""
        for digest in ('', HEX, 'sha256:', ':%s' % HEX, 'sha256:../../x',
                       'sha256:%s/..' % HEX, 'sha256:%s\n' % HEX,
                       'sha256:%s' % HEX.upper()):
            self.assertFalse(digest_util.is_valid_digest(digest), digest)


class FilenameTestCase(unittest.TestCase):
    def test_gzip_layer_is_layer_tar(self):
        """Test gzip layers always map to layer.tar."""
        layer = model.Layer(constants.MEDIA_TYPE_DOCKER_LAYER_GZIP, 10,
                            'sha256:%s' % HEX)
        self.assertEqual('layer.tar', digest_util.filename_for(layer))

    def test_any_gzip_suffix_is_layer_tar(self):
        """Test the decision only looks at the gzip suffix."""
        layer = model.Layer('application/vnd.oci.image.layer.v1.tar+gzip',
                            10, 'sha256:%s' % HEX)
        self.assertEqual('layer.tar', digest_util.filename_for(layer))

    def test_config_is_hex_json(self):
        """Test non gzip blobs are named after their digest."""
        layer = model.Layer(constants.MEDIA_TYPE_DOCKER_CONFIG, 10,
                            'sha256:%s' % HEX)
        self.assertEqual('%s.json' % HEX, digest_util.filename_for(layer))

    def test_filename_ignores_size(self):
        a = model.Layer(constants.MEDIA_TYPE_DOCKER_CONFIG, 10,
                        'sha256:%s' % HEX)
        b = model.Layer(constants.MEDIA_TYPE_DOCKER_CONFIG, 99999,
                        'sha256:%s' % HEX)
        self.assertEqual(digest_util.filename_for(a),
                         digest_util.filename_for(b))

    def test_target_path_for_layer(self):
        layer = model.Layer(constants.MEDIA_TYPE_DOCKER_LAYER_GZIP, 10,
                            'sha256:%s' % HEX)
        self.assertEqual(os.path.join('out', 'abcdef', 'layer.tar'),
                         digest_util.target_path(layer, 'out', 'abcdef'))

    def test_target_path_for_config(self):
        layer = model.Layer(constants.MEDIA_TYPE_DOCKER_CONFIG, 10,
                            'sha256:%s' % HEX)
        self.assertEqual(os.path.join('out', '%s.json' % HEX),
                         digest_util.target_path(layer, 'out', 'ignored'))


class CompressionTestCase(unittest.TestCase):
    def test_detect_gzip(self):
        self.assertEqual(
            constants.COMPRESSION_GZIP,
            compression.detect_compression_from_media_type(
                constants.MEDIA_TYPE_DOCKER_LAYER_GZIP))

    def test_detect_none(self):
        self.assertEqual(
            constants.COMPRESSION_NONE,
            compression.detect_compression_from_media_type(
                constants.MEDIA_TYPE_DOCKER_CONFIG))
        self.assertEqual(
            constants.COMPRESSION_NONE,
            compression.detect_compression_from_media_type(None))

    def test_streaming_gunzip_in_small_chunks(self):
        """Test gzip data fed a few bytes at a time decompresses whole."""
        plaintext = b'hello world ' * 1000
        data = gzip.compress(plaintext)
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        out = b''
        for i in range(0, len(data), 7):
            out += d.decompress(data[i:i + 7])
        out += d.flush()
        self.assertEqual(plaintext, out)
        self.assertTrue(d.complete)

    def test_truncated_gzip_is_incomplete(self):
        data = gzip.compress(b'hello world ' * 1000)
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        d.decompress(data[:len(data) // 2])
        d.flush()
        self.assertFalse(d.complete)

    def test_multiple_gzip_members(self):
        """Test every member of a concatenated gzip stream is decompressed."""
        data = gzip.compress(b'first member ') + gzip.compress(b'second member')
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        out = d.decompress(data)
        out += d.flush()
        self.assertEqual(b'first member second member', out)
        self.assertTrue(d.complete)

    def test_multiple_gzip_members_in_small_chunks(self):
        first = gzip.compress(b'a' * 5000)
        data = first + gzip.compress(b'b' * 5000)
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        out = b''
        # Split exactly on the member boundary, then a few bytes at a time
        out += d.decompress(first)
        rest = data[len(first):]
        for i in range(0, len(rest), 5):
            out += d.decompress(rest[i:i + 5])
        out += d.flush()
        self.assertEqual(b'a' * 5000 + b'b' * 5000, out)
        self.assertTrue(d.complete)

    def test_truncated_second_member_is_incomplete(self):
        second = gzip.compress(b'second member')
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        d.decompress(gzip.compress(b'first member') + second[:8])
        d.flush()
        self.assertFalse(d.complete)

    def test_garbage_raises_zlib_error(self):
        d = compression.StreamingDecompressor(constants.COMPRESSION_GZIP)
        self.assertRaises(zlib.error, d.decompress, b'this is not gzip')

    def test_passthrough(self):
        d = compression.StreamingDecompressor(constants.COMPRESSION_NONE)
        self.assertEqual(b'{"a": 1}', d.decompress(b'{"a": 1}'))
        self.assertEqual(b'', d.flush())
        self.assertTrue(d.complete)

    def test_unsupported_type(self):
        self.assertRaises(ValueError, compression.StreamingDecompressor, 'zstd')
