import os

from hodlbook.env import get_env, load_env


def test_get_env_existing(monkeypatch):
    monkeypatch.setenv("FOO_BAR", "qux")
    assert get_env("FOO_BAR", "baz") == "qux"


def test_get_env_default(monkeypatch):
    monkeypatch.delenv("FOO_BAR", raising=False)
    assert get_env("FOO_BAR", "baz") == "baz"


def test_get_env_empty_value_uses_default(monkeypatch):
    monkeypatch.setenv("FOO_BAR", "")
    assert get_env("FOO_BAR", "baz") == "baz"


def test_load_env_reads_pairs(tmp_path, monkeypatch):
    for name in ("HB_ALPHA", "HB_BETA", "HB_NOEQ"):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n\n  HB_ALPHA = one  \nHB_BETA=a=b\nHB_NOEQ\n", encoding="utf-8"
    )
    load_env(env_file)
    assert get_env("HB_ALPHA", "unset") == "one"
    assert get_env("HB_BETA", "unset") == "a=b"
    assert get_env("HB_NOEQ", "unset") == "unset"


def test_load_env_keeps_existing_values(tmp_path, monkeypatch):
    monkeypatch.setenv("HB_KEEP", "original")
    monkeypatch.setenv("HB_EMPTY", "")
    env_file = tmp_path / ".env"
    env_file.write_text("HB_KEEP=replaced\nHB_EMPTY=filled\n", encoding="utf-8")
    load_env(env_file)
    assert get_env("HB_KEEP", "unset") == "original"
    assert get_env("HB_EMPTY", "unset") == "filled"


def test_load_env_default_path_in_cwd(tmp_path, monkeypatch):
    monkeypatch.delenv("HB_CWD", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("HB_CWD=here\n", encoding="utf-8")
    load_env()
    assert get_env("HB_CWD", "unset") == "here"


def test_load_env_missing_file_changes_nothing(tmp_path, monkeypatch):
    monkeypatch.delenv("HB_MISSING", raising=False)
    before = dict(os.environ)
    load_env(tmp_path / "absent.env")
    assert get_env("HB_MISSING", "unset") == "unset"
    assert dict(os.environ) == before