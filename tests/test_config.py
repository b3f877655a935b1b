from pathlib import Path

import pytest

from qa_matrix.config import QAConfig, load_config
from qa_matrix.errors import ConfigurationError


def test_defaults_without_pyproject(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == QAConfig(project_root=tmp_path.resolve())
    assert config.env_root("311") == tmp_path.resolve() / ".venv311"


def test_defaults_without_table(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n')
    assert load_config(tmp_path) == QAConfig(project_root=tmp_path.resolve())


def test_load_table(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text(
        """
[tool.qa-matrix]
environments = [26, "27"]
venv-root = "envs"
unit_target = "gitlint"
style_targets = ["gitlint", "qa", "examples"]
flake8_ignore = ["H307", "H405"]
max_line_length = 100
upgrade_pip = false
interpreters = { "27" = "/usr/bin/python2.7" }
"""
    )

    config = load_config(tmp_path)

    assert config.environments == ("26", "27")
    assert config.unit_target == "gitlint"
    assert config.style_targets == ("gitlint", "qa", "examples")
    assert config.flake8_ignore == ("H307", "H405")
    assert config.max_line_length == 100
    assert config.upgrade_pip is False
    assert config.interpreters == {"27": "/usr/bin/python2.7"}
    assert config.env_root("27") == tmp_path.resolve() / "envs" / ".venv27"


@pytest.mark.parametrize(
    "body",
    [
        "unknown_key = 1",
        'max_line_length = "long"',
        "upgrade_pip = 1",
        "style_targets = [1, 2]",
        "venv_root = 3",
        'project_root = "/"',
    ],
)
def test_invalid_table(tmp_path: Path, body):
    (tmp_path / "pyproject.toml").write_text(f"[tool.qa-matrix]\n{body}\n")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


def test_unparseable_pyproject(tmp_path: Path):
    (tmp_path / "pyproject.toml").write_text("[tool.qa-matrix\n")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)
