"""Pipeline driver for dockersave.

Runs authentication, manifest resolution and blob materialization in order
and lays the result out the way docker save used to. Failures up to and
including diff-ID extraction abort the run; a failure on an individual
layer is logged and the remaining layers are still fetched.
"""

import logging
import os

from dockersave import auth
from dockersave import digest as digest_util
from dockersave import errors
from dockersave import layers
from dockersave import manifest as manifest_util
from dockersave import output_directory

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.INFO)


class PullResult(object):
    def __init__(self, manifest, output_dir):
        self.manifest = manifest
        self.output_dir = output_dir
        self.layer_ids = []
        self.failed_layers = []
        self.bytes_written = 0

    @property
    def complete(self):
        return not self.failed_layers


class Pipeline(object):
    def __init__(self, config, max_retries=None):
        self.config = config
        self.session = auth.AuthSession(config)
        self.resolver = manifest_util.ManifestResolver(config, self.session)
        self.materializer = layers.LayerMaterializer(
            config, self.session, max_retries=max_retries)

    def authenticate(self):
        self.session.discover()
        if self.session.challenged:
            self.session.authenticate(self.config.image)

    def _write_layer(self, layer, legacy_id, parent_id):
        layer_dir = os.path.join(self.config.output_dir, legacy_id)
        output_directory.ensure_directory(layer_dir)
        output_directory.write_version(layer_dir)
        output_directory.write_layer_json(layer_dir, legacy_id, parent_id)
        return self.materializer.materialize(
            layer, self.config.output_dir, legacy_id=legacy_id)

    def run(self):
        self.authenticate()
        manifest = self.resolver.resolve(
            self.config.image, self.config.reference,
            self.config.os, self.config.architecture)

        output_dir = self.config.output_dir
        output_directory.ensure_directory(output_dir)
        result = PullResult(manifest, output_dir)

        LOG.info('Fetching config file')
        config_path = self.materializer.materialize_config(manifest, output_dir)
        diff_ids = output_directory.read_diff_ids(config_path)
        if len(diff_ids) != len(manifest.layers):
            raise errors.LayerCountMismatch(
                'Image config lists %d diff ids but the manifest has %d layers'
                % (len(diff_ids), len(manifest.layers)))
        LOG.info('Loaded %d layer ids from config json' % len(diff_ids))

        parent_id = ''
        for layer, legacy_id in zip(manifest.layers, diff_ids):
            layer.materialized_id = legacy_id
            result.layer_ids.append(legacy_id)
            try:
                result.bytes_written += self._write_layer(
                    layer, legacy_id, parent_id)
            except (errors.MaterializeError, OSError) as e:
                LOG.error('Failed to download layer %s: %s'
                          % (digest_util.digest_hex(layer.digest), e))
                result.failed_layers.append(layer)
            parent_id = legacy_id

        output_directory.write_manifest(output_dir, manifest)
        if result.failed_layers:
            LOG.warning('%d of %d layers could not be written'
                        % (len(result.failed_layers), len(manifest.layers)))
        LOG.info('Done')
        return result
