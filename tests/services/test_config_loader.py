import pytest

from remotetest.errors import RunnerError
from remotetest.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".remotetest.yml"
    config_file.write_text(
        "git_branch: main\ndriver_host: testdriver-2\npackages:\n  - git\n  - gcc\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["git_branch"] == "main"
    assert loaded["driver_host"] == "testdriver-2"
    assert loaded["packages"] == ["git", "gcc"]


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".remotetest.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(RunnerError, match="Unknown configuration keys"):
        loader.load(str(config_file))


def test_config_loader_rejects_non_list_packages(tmp_path):
    config_file = tmp_path / ".remotetest.yml"
    config_file.write_text("packages: git gcc\n", encoding="utf-8")

    with pytest.raises(RunnerError, match="packages"):
        ConfigLoader().load(str(config_file))


def test_config_loader_missing_file(tmp_path):
    with pytest.raises(RunnerError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "absent.yml"))
