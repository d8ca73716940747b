import json
import logging
import os

from dockersave import constants
from dockersave import digest as digest_util
from dockersave import errors


LOG = logging.getLogger(__name__)
LOG.setLevel(logging.INFO)


def ensure_directory(path):
    if not os.path.exists(path):
        os.makedirs(path)


def write_version(layer_dir):
    with open(os.path.join(layer_dir, constants.LEGACY_VERSION_FILE), 'w') as f:
        f.write(constants.LEGACY_VERSION)


def write_layer_json(layer_dir, layer_id, parent_id):
    with open(os.path.join(layer_dir, constants.LEGACY_JSON_FILE), 'w') as f:
        f.write(json.dumps({'id': layer_id, 'parent': parent_id},
                           sort_keys=True))


def write_manifest(output_dir, manifest):
    manifest_path = os.path.join(output_dir, constants.MANIFEST_FILE)
    with open(manifest_path, 'w') as f:
        f.write(json.dumps(manifest.to_dict(), indent=4))
    return manifest_path


def read_diff_ids(config_path):
    """Return the legacy layer IDs listed in an image config.

    These are the entries of rootfs.diff_ids with their algorithm prefix
    removed, in order.

    Raises:
        DiffIDError: If the file cannot be read or rootfs.diff_ids is missing
            or is not a list of '<algorithm>:<hex>' digests.
    """
    try:
        with open(config_path) as f:
            image_conf = json.loads(f.read())
    except OSError as e:
        raise errors.DiffIDError(
            'Failed to open file %s: %s' % (config_path, e))
    except ValueError as e:
        raise errors.DiffIDError(
            'Failed to decode %s: %s' % (config_path, e))

    rootfs = image_conf.get('rootfs') if isinstance(image_conf, dict) else None
    if not isinstance(rootfs, dict) or 'diff_ids' not in rootfs:
        raise errors.DiffIDError(
            'No rootfs.diff_ids found in %s' % config_path)

    diff_ids = rootfs['diff_ids']
    if not isinstance(diff_ids, list) or not all(
            isinstance(d, str) and d for d in diff_ids):
        raise errors.DiffIDError(
            'rootfs.diff_ids in %s is not a list of digests' % config_path)

    # The hex part becomes a directory name under the output root
    for diff_id in diff_ids:
        if not digest_util.is_valid_digest(diff_id):
            raise errors.DiffIDError(
                'rootfs.diff_ids in %s has an invalid digest %r'
                % (config_path, diff_id))

    return [digest_util.digest_hex(d) for d in diff_ids]
