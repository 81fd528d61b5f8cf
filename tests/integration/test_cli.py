import json
import logging
import pytest
import yaml
from click.testing import CliRunner
from pycontain.CLI.main import cli

@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # setup_logging binds a handler to CliRunner's captured stdout
    logging.getLogger("pycontain").handlers.clear()

def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'run throwaway containers' in result.output

def test_cli_up_no_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['up', '-f', str(tmp_path / 'non_existent.yml')])
    assert result.exit_code == 1
    assert 'non_existent.yml not found.' in result.output

def test_cli_run_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['run', '--help'])
    assert result.exit_code == 0
    assert '--wait-log' in result.output

def test_cli_run_conflicting_waits(fake_docker):
    runner = CliRunner()
    result = runner.invoke(cli, ['--runtime', fake_docker, 'run', '--wait-healthy', '--wait-time', '1', 'nginx'])
    assert result.exit_code == 2
    assert 'Use only one of' in result.output

def test_cli_run_invalid_image(fake_docker):
    runner = CliRunner()
    result = runner.invoke(cli, ['--runtime', fake_docker, 'run', '-d', 'not valid'])
    assert result.exit_code == 1
    assert 'Invalid image name' in result.output

def test_cli_run_inspect_rm(fake_docker, runtime_state):
    runner = CliRunner()
    result = runner.invoke(cli, [
        '--runtime', fake_docker, 'run', '-d',
        '--name', 'cli-web', '-e', 'A=1', '-p', '8080:80', '--wait-log', 'ready',
        'fake/echo', 'ready',
    ])
    assert result.exit_code == 0, result.output
    assert 'cli-web' in result.output
    assert runtime_state()['cli-web']['env'] == ['A=1']

    result = runner.invoke(cli, ['--runtime', fake_docker, 'inspect', 'cli-web'])
    assert result.exit_code == 0
    info = json.loads(result.output.strip().splitlines()[-1])
    assert info == {'id': 'id-cli-web', 'running': True, 'health': ''}

    result = runner.invoke(cli, ['--runtime', fake_docker, 'rm', 'cli-web'])
    assert result.exit_code == 0
    assert 'Removed cli-web.' in result.output
    assert runtime_state() == {}

    result = runner.invoke(cli, ['--runtime', fake_docker, 'inspect', 'cli-web'])
    assert result.exit_code == 1
    assert 'No such container: cli-web' in result.output

def test_cli_rm_missing(fake_docker):
    runner = CliRunner()
    result = runner.invoke(cli, ['--runtime', fake_docker, 'rm', 'cli-missing'])
    assert result.exit_code == 0
    assert 'No such container: cli-missing' in result.output

def test_cli_up_detached(fake_docker, runtime_state, tmp_path):
    spec_file = tmp_path / 'pycontain.yml'
    with open(spec_file, 'w') as f:
        yaml.dump({
            'image': 'fake/web:2',
            'name': 'cli-up',
            'health_check': 'true',
            'wait_for': {'health_check': True},
        }, f)

    runner = CliRunner()
    result = runner.invoke(cli, ['--runtime', fake_docker, 'up', '-f', str(spec_file), '--detach'])
    assert result.exit_code == 0, result.output
    assert runtime_state()['cli-up']['image'] == 'fake/web:2'

    result = runner.invoke(cli, ['--runtime', fake_docker, 'inspect', 'cli-up'])
    assert json.loads(result.output.strip().splitlines()[-1])['health'] == 'healthy'

    runner.invoke(cli, ['--runtime', fake_docker, 'rm', 'cli-up'])
    assert runtime_state() == {}

def test_cli_runtime_from_env_file(fake_docker, tmp_path):
    env_file = tmp_path / 'runtime.env'
    env_file.write_text(f"PYCONTAIN_RUNTIME={fake_docker}\n")
    runner = CliRunner()
    result = runner.invoke(cli, ['--env-file', str(env_file), 'rm', 'cli-env'])
    assert result.exit_code == 0
    assert 'No such container: cli-env' in result.output

def test_cli_run_detached_removes_unready_container(fake_docker, runtime_state):
    runner = CliRunner()
    result = runner.invoke(cli, [
        '--runtime', fake_docker, 'run', '-d', '--name', 'cli-unready', '--wait-healthy', 'fake/echo',
    ])
    assert result.exit_code == 1
    assert 'Unexpected container status: NONE (container cli-unready)' in result.output
    assert 'cli-unready' not in runtime_state()
