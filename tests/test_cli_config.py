"""Tests for CLI configuration module."""

import json
from pathlib import Path

from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.shardvault' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['controller_port'] == 8000
    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3
    assert config.data['retry_backoff_multiplier'] == 2
    assert config.data['download_dir'] == 'downloads'


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file."""
    config_path = tmp_path / '.shardvault' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'owner_id': 'alice',
        'controller_host': 'example.com',
        'controller_port': 9000,
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.get_owner_id() == 'alice'
    assert config.data['controller_host'] == 'example.com'
    assert config.data['controller_port'] == 9000

    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3


def test_config_save_and_get_owner_id(temp_config):
    """Test saving and retrieving the owner id."""
    temp_config.set_owner_id('bob')

    assert temp_config.get_owner_id() == 'bob'

    with open(temp_config.config_path, 'r') as f:
        data = json.load(f)
    assert data['owner_id'] == 'bob'


def test_config_owner_falls_back_to_login(temp_config, monkeypatch):
    """Test that an empty owner id falls back to the login name."""
    monkeypatch.setattr('cli.config.getpass.getuser', lambda: 'login-name')
    temp_config.data['owner_id'] = ''

    assert temp_config.get_owner_id() == 'login-name'


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.shardvault' / 'config.json'
    config_path.parent.mkdir(parents=True)

    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)
    assert config.data['controller_port'] == 8000

    backup_path = config_path.with_suffix('.json.bak')
    assert backup_path.exists()


def test_config_get_base_url(temp_config):
    """Test base URL construction."""
    temp_config.data['controller_host'] = 'example.com'
    temp_config.data['controller_port'] = 9000
    assert temp_config.get_base_url() == 'http://example.com:9000'


def test_config_get_timeout(temp_config):
    """Test timeout retrieval."""
    assert temp_config.get_timeout() == 30

    temp_config.data['timeout'] = 60
    assert temp_config.get_timeout() == 60


def test_config_get_retry_config(temp_config):
    """Test retry configuration retrieval."""
    retry_config = temp_config.get_retry_config()

    assert retry_config['max_retries'] == 3
    assert retry_config['retry_backoff_multiplier'] == 2

    temp_config.data['max_retries'] = 5
    temp_config.data['retry_backoff_multiplier'] = 3

    retry_config = temp_config.get_retry_config()
    assert retry_config['max_retries'] == 5
    assert retry_config['retry_backoff_multiplier'] == 3


def test_config_download_dir(temp_config):
    """Test download directory retrieval."""
    assert temp_config.get_download_dir() == Path('downloads')

    temp_config.data['download_dir'] = '/srv/out'
    assert temp_config.get_download_dir() == Path('/srv/out')


def test_config_directory_created_if_missing(tmp_path):
    """Test that config directory is created if it doesn't exist."""
    config_path = tmp_path / 'nested' / 'deep' / '.shardvault' / 'config.json'

    assert not config_path.parent.exists()

    Config(config_path)
    assert config_path.parent.exists()
    assert config_path.exists()
