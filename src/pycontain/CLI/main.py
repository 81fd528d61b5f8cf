# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command Line Interface for pycontain.
"""
import json
import logging
import os
import time

import click

from ..BACKENDS.factory import backend_from_config
from ..errors import ContainersError
from ..MODELS.container import Container, HealthCheck, LogMessage, WaitForHealthCheck, WaitTime
from ..MODELS.runtime_config import RUNTIME_ENV_VAR, RuntimeConfig
from ..PARSERS.spec_parser import ContainerSpecParser
from ..UTILS.log_utils import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.option('--runtime', envvar=RUNTIME_ENV_VAR, default=None,
              help='Runtime binary (docker, podman or a path)')
@click.option('--env-file', default='.env', help='.env file to read PYCONTAIN_RUNTIME from')
@click.option('--verbose', '-v', is_flag=True, help='Log runtime commands')
@click.pass_context
def cli(ctx, runtime, env_file, verbose):
    """
    pycontain - run throwaway containers and wait until they are ready.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    overrides = {'runtime': runtime} if runtime else {}
    config = RuntimeConfig.from_env(env_file=env_file, **overrides)
    ctx.ensure_object(dict)
    ctx.obj['backend'] = backend_from_config(config)


@cli.command()
@click.option('--file', '-f', default='pycontain.yml', help='Container spec file path')
@click.option('--detach', '-d', is_flag=True, help='Leave the container running and exit')
@click.pass_context
def up(ctx, file, detach):
    """Start the container described in a spec file."""
    if not os.path.exists(file):
        raise click.ClickException(f"{file} not found.")
    try:
        container = ContainerSpecParser().parse(file)
    except ValueError as e:
        raise click.ClickException(str(e))

    _start(ctx.obj['backend'], container, detach)


@cli.command(context_settings={'ignore_unknown_options': True})
@click.argument('image')
@click.option('--name', default=None, help='Container name')
@click.option('--env', '-e', multiple=True, help='Environment variable KEY=VALUE')
@click.option('--port', '-p', multiple=True, help='Port mapping SOURCE:TARGET')
@click.option('--volume', '-v', multiple=True, help='Volume SOURCE:MOUNT_POINT')
@click.option('--health-cmd', default=None, help='Health check command')
@click.option('--wait-log', default=None, help='Wait for a log line matching this regex')
@click.option('--wait-healthy', is_flag=True, help='Wait for the health check to pass')
@click.option('--wait-time', type=float, default=None, help='Wait this many seconds')
@click.option('--grace', type=float, default=0.0, help='Extra seconds to wait once ready')
@click.option('--detach', '-d', is_flag=True, help='Leave the container running and exit')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, image, name, env, port, volume, health_cmd, wait_log, wait_healthy, wait_time,
        grace, detach, args):
    """Start IMAGE and wait until it is ready."""
    if sum(1 for w in (wait_log, wait_healthy, wait_time is not None) if w) > 1:
        raise click.UsageError("Use only one of --wait-log, --wait-healthy and --wait-time.")

    try:
        container = Container.from_image(image)
    except ValueError as e:
        raise click.ClickException(str(e))

    if name:
        container.with_name(name)
    for entry in env:
        key, _, value = entry.partition('=')
        container.with_env_var(key, value)
    for mapping in port:
        source, sep, target = mapping.partition(':')
        if not sep:
            raise click.BadParameter(f"expected SOURCE:TARGET, got {mapping}", param_hint='--port')
        container.with_port(source, target)
    for entry in volume:
        source, sep, mount_point = entry.partition(':')
        if not sep:
            raise click.BadParameter(f"expected SOURCE:MOUNT_POINT, got {entry}", param_hint='--volume')
        if os.path.isabs(source) or source.startswith('.'):
            container.with_mount(source, mount_point)
        else:
            container.with_volume(source, mount_point)
    if health_cmd:
        container.with_health_check(HealthCheck(command=health_cmd))

    if wait_log:
        container.wait_for(LogMessage(pattern=wait_log))
    elif wait_healthy:
        container.wait_for(WaitForHealthCheck())
    elif wait_time is not None:
        container.wait_for(WaitTime(duration=wait_time))

    container.with_additional_wait_period(grace).with_command(args)
    _start(ctx.obj['backend'], container, detach)


def _start(backend, container, detach):
    """
    Runs and waits for a container. Without detach, keeps it until Ctrl+C.
    """
    if detach:
        try:
            backend.run(container)
            backend.wait(container)
        except ContainersError as e:
            _discard(backend, container)
            raise click.ClickException(str(e))
        click.echo(container.name)
        return

    with backend.create(container) as handle:
        try:
            handle.run_and_wait()
        except ContainersError as e:
            raise click.ClickException(str(e))

        click.echo(f"Container {handle.name} is ready. Press Ctrl+C to stop.")
        try:
            while handle.is_running():
                time.sleep(1)
            click.echo(f"Container {handle.name} exited.")
        except KeyboardInterrupt:
            click.echo("\nStopping container...")


def _discard(backend, container):
    """
    Stops and removes a detached container that never became ready.
    """
    try:
        backend.create(container).close()
    except ContainersError as e:
        logger.warning("Failed to remove container %s: %s", container.name, e)


@cli.command()
@click.argument('name')
@click.pass_context
def inspect(ctx, name):
    """Show whether a container exists, runs and is healthy."""
    try:
        state = ctx.obj['backend'].inspect(name)
    except ContainersError as e:
        raise click.ClickException(str(e))
    if state is None:
        raise click.ClickException(f"No such container: {name}")

    click.echo(json.dumps({
        'id': state.id,
        'running': state.running,
        'health': state.health_status.value,
    }))


@cli.command()
@click.argument('name')
@click.pass_context
def logs(ctx, name):
    """Follow the logs of a running container."""
    try:
        stream = ctx.obj['backend'].log(name)
    except ContainersError as e:
        raise click.ClickException(str(e))
    if stream is None:
        raise click.ClickException(f"Container {name} is not running.")

    with stream:
        try:
            for line in stream.lines():
                click.echo(line)
        except KeyboardInterrupt:
            click.echo("\nStopping log tailing...")


@cli.command()
@click.argument('name')
@click.pass_context
def rm(ctx, name):
    """Stop and remove a container."""
    backend = ctx.obj['backend']
    try:
        if backend.runs(name):
            backend.stop(name)
        if backend.exists(name):
            backend.rm(name)
            click.echo(f"Removed {name}.")
        else:
            click.echo(f"No such container: {name}")
    except ContainersError as e:
        raise click.ClickException(str(e))


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
