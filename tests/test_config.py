import json
import os
from pathlib import Path

import pytest

from aliyun_message.message_api_caller import Client, MessageAPIConfig, get_default_config_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ALIYUN_MESSAGE_CONFIG", "ALIYUN_ACCESS_KEY_ID", "ALIYUN_ACCESS_KEY_SECRET"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path: Path, data: dict) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_loads_required_and_optional_fields(tmp_path: Path):
    path = write_config(tmp_path, {
        "access_key_id": "testId",
        "access_key_secret": "testSecret",
        "sign_name": "my_product",
        "template_code": "SMS_0000",
        "timeout": 10,
    })
    config = MessageAPIConfig(path)

    assert config.access_key_id == "testId"
    assert config.access_key_secret == "testSecret"
    assert config.sign_name == "my_product"
    assert config.template_code == "SMS_0000"
    assert config.tts_code is None
    assert config.timeout == 10


def test_environment_overrides_credentials(tmp_path: Path, monkeypatch):
    path = write_config(tmp_path, {"access_key_id": "fileId", "access_key_secret": "fileSecret"})
    monkeypatch.setenv("ALIYUN_ACCESS_KEY_SECRET", "envSecret")
    config = MessageAPIConfig(path)

    assert config.access_key_id == "fileId"
    assert config.access_key_secret == "envSecret"


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        MessageAPIConfig(str(tmp_path / "missing.json"))


def test_missing_required_field_raises(tmp_path: Path):
    path = write_config(tmp_path, {"access_key_id": "testId"})
    with pytest.raises(ValueError, match="access_key_secret"):
        MessageAPIConfig(path)


def test_default_path_resolution(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ALIYUN_MESSAGE_CONFIG", "/etc/aliyun.json")
    assert get_default_config_path() == "/etc/aliyun.json"

    monkeypatch.delenv("ALIYUN_MESSAGE_CONFIG")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert get_default_config_path() == os.path.join(str(tmp_path), "aliyun_message", "config.json")


def test_client_from_config(tmp_path: Path):
    path = write_config(tmp_path, {"access_key_id": "testId", "access_key_secret": "testSecret", "timeout": 3})
    client = Client.from_config(MessageAPIConfig(path))

    assert client.access_key_id == "testId"
    assert client.timeout == 3
    client.close()
