import click
import logging
import os
from shakenfist_utilities import logs
import sys

from dockersave import config as config_util
from dockersave import constants
from dockersave import errors
from dockersave.pipeline import Pipeline


LOG = logs.setup_console(__name__)


@click.group()
@click.option('--verbose', is_flag=True, envvar='DOCKERSAVE_VERBOSE')
@click.option('--os', default=constants.DEFAULT_OS, envvar='DOCKERSAVE_OS')
@click.option('--architecture', default=constants.DEFAULT_ARCHITECTURE,
              envvar='DOCKERSAVE_ARCHITECTURE')
@click.option('--registry', default=constants.DEFAULT_REGISTRY,
              envvar='DOCKERSAVE_REGISTRY',
              help='Registry host, or a full base URL')
@click.option('--insecure', is_flag=True, default=False,
              help='Use HTTP instead of HTTPS for registry connections')
@click.option('--timeout', default=constants.DEFAULT_TIMEOUT, type=int,
              envvar='DOCKERSAVE_TIMEOUT',
              help='Timeout in seconds for each registry request')
@click.pass_context
def cli(ctx, verbose=None, os=None, architecture=None, registry=None,
        insecure=None, timeout=None):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
        LOG.setLevel(logging.DEBUG)

    if not ctx.obj:
        ctx.obj = {}
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['OS'] = os
    ctx.obj['ARCHITECTURE'] = architecture
    ctx.obj['REGISTRY'] = config_util.registry_base_url(
        registry, secure=(not insecure))
    ctx.obj['TIMEOUT'] = timeout


def _check_output_dir(path):
    if not os.path.exists(path):
        return
    if not os.path.isdir(path):
        raise errors.ConfigError(
            'Output %s exists and is not a directory' % path)
    LOG.warning('Directory %s already exists. Contents will be overwritten'
                % path)


@click.command('pull')
@click.argument('image')
@click.option('--output', '-o', default=None,
              help='Target directory, defaults to the image name')
@click.option('--fail-on-layer-error', is_flag=True, default=False,
              help='Exit non-zero if any layer could not be written')
@click.pass_context
def pull_cmd(ctx, image, output, fail_on_layer_error):
    """Pull IMAGE into a docker-save style directory.

    IMAGE is of the form NAME[:TAG] or NAME@DIGEST. Single segment names
    are looked up in the library/ namespace and the tag defaults to latest.

    \b
    Examples:
      dockersave pull busybox
      dockersave --architecture arm64 pull swaggerapi/swagger-editor:v4 -o out
    """
    try:
        conf = config_util.SessionConfig.from_image_reference(
            ctx.obj['REGISTRY'], image,
            os=ctx.obj['OS'], architecture=ctx.obj['ARCHITECTURE'],
            output_dir=output, verbose=ctx.obj['VERBOSE'],
            timeout=ctx.obj['TIMEOUT'])
        _check_output_dir(conf.output_dir)
        LOG.debug('Pulling with %s' % conf.as_dict())

        result = Pipeline(conf).run()

    except errors.DockerSaveError as e:
        click.echo('Error: %s' % e, err=True)
        sys.exit(1)

    if not result.complete:
        click.echo('Warning: %d layer(s) failed to download'
                   % len(result.failed_layers), err=True)
        if fail_on_layer_error:
            sys.exit(2)

    click.echo('Wrote %s (%d layers) to %s'
               % (image, len(result.layer_ids), result.output_dir))


cli.add_command(pull_cmd)
