"""Tests for the prefstore command line tool."""

import json

import pytest

from prefstore.cli import format_listing, main
from prefstore.config import PATH_DEFAULTS


APP_ID = "com.example.app"


@pytest.fixture
def cli_env(settings, tmp_path, monkeypatch):
    """Point the CLI's settings at the scratch tree through the environment."""
    monkeypatch.setenv("PREFSTORE_CONFIG", str(tmp_path / "missing.toml"))
    for name in PATH_DEFAULTS:
        monkeypatch.setenv(f"PREFSTORE_{name.upper()}", str(getattr(settings, name)))
    return settings


def run(capsys, *argv):
    code = main(list(argv))
    out, err = capsys.readouterr()
    return code, out.rstrip("\n"), err


class TestSystemProperties:
    def test_list_keys(self, cli_env, capsys):
        code, out, _ = run(capsys)
        assert code == 0
        assert "com.palm.properties.nduid" in json.loads(out)

    def test_get_one(self, cli_env, capsys):
        code, out, _ = run(capsys, "com.palm.properties.buildNumber")
        assert code == 0
        assert json.loads(out) == ["142"]

    def test_get_one_shell(self, cli_env, capsys):
        code, out, _ = run(capsys, "-m", "com.palm.properties.buildName")
        assert (code, out) == (0, "openwebos-qemux86")

    def test_missing_key(self, cli_env, capsys):
        code, out, err = run(capsys, "com.palm.properties.absent")
        assert code == 1
        assert out == ""
        assert "error: no such key" in err

    def test_set_is_rejected(self, cli_env, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-s", "com.palm.properties.nduid", "x"])
        assert exc_info.value.code == 2


class TestAppProperties:
    def test_set_get_delete(self, cli_env, capsys):
        assert run(capsys, "-n", APP_ID, "-s", "url", '["http://example.com"]')[0] == 0

        code, out, _ = run(capsys, "-n", APP_ID, "url")
        assert (code, json.loads(out)) == (0, ["http://example.com"])

        code, out, _ = run(capsys, "-n", APP_ID)
        assert json.loads(out) == ["url"]

        code, out, _ = run(capsys, "-n", APP_ID, "-a")
        assert json.loads(out) == [{"url": ["http://example.com"]}]

        assert run(capsys, "-n", APP_ID, "-k", "url")[0] == 0
        code, _, err = run(capsys, "-n", APP_ID, "url")
        assert code == 1
        assert "no such key" in err

    def test_shell_mode_wraps_plain_strings(self, cli_env, capsys):
        assert run(capsys, "-n", APP_ID, "-m", "-s", "greeting", "hi")[0] == 0

        assert run(capsys, "-n", APP_ID, "-m", "greeting")[:2] == (0, "hi")
        assert json.loads(run(capsys, "-n", APP_ID, "greeting")[1]) == ["hi"]
        assert run(capsys, "-n", APP_ID, "-m")[:2] == (0, "greeting")

    def test_non_document_value_rejected(self, cli_env, capsys):
        code, _, err = run(capsys, "-n", APP_ID, "-s", "k", "plain")
        assert code == 1
        assert "illegal value (not a json document)" in err

    def test_failed_set_keeps_prior_value(self, cli_env, capsys):
        """A rejected set reports its own error and leaves the store unchanged."""
        run(capsys, "-n", APP_ID, "-s", "k", '{"a": 1}')

        code, _, err = run(capsys, "-n", APP_ID, "-s", "k", "plain")
        assert code == 1
        assert err.strip().endswith("error: illegal value (not a json document)")

        code, out, _ = run(capsys, "-n", APP_ID, "k")
        assert (code, json.loads(out)) == (0, {"a": 1})

    def test_set_without_value(self, cli_env):
        with pytest.raises(SystemExit):
            main(["-n", APP_ID, "-s", "k"])

    def test_all_with_key(self, cli_env):
        with pytest.raises(SystemExit):
            main(["-n", APP_ID, "-a", "k"])


class TestFormatListing:
    def test_json(self):
        assert format_listing(["a", "b"], shell=False) == '["a", "b"]'

    def test_shell(self):
        assert format_listing(["a", {"b": ["c"]}], shell=True) == 'a {"b": ["c"]}'
