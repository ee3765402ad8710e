from wallpaper_span_tool.config import APP_NAME, config_dir, output_dir


def test_config_dir_follows_xdg_config_home(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert config_dir() == tmp_path / APP_NAME
    assert config_dir().is_dir()


def test_config_dir_defaults_to_dot_config(monkeypatch, tmp_path):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert config_dir() == tmp_path / ".config" / APP_NAME


def test_output_dir_lives_under_config_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert output_dir() == tmp_path / APP_NAME / "span"
    assert output_dir().is_dir()
