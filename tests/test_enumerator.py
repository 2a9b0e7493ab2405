"""Tests for system property enumeration."""

import pytest

from prefstore.exceptions import SystemConfigMissing
from prefstore.properties import SystemPropertyEnumerator, SystemPropertyResolver, VisibilityFilter
from prefstore.properties.resolver import COMPUTED_TOKENS, make_key


COMPUTED_KEYS = [make_key(t) for t in COMPUTED_TOKENS]


@pytest.fixture
def enumerator(resolver, settings):
    return SystemPropertyEnumerator(resolver, VisibilityFilter(settings.whitelist_path))


class TestListKeys:
    """Key discovery across the three directories and the computed tokens."""

    def test_only_computed_when_directories_empty(self, enumerator):
        """With empty directories only computed keys are listed."""
        assert enumerator.list_keys() == COMPUTED_KEYS

    def test_encounter_order_and_dedup(self, enumerator, settings):
        """Directory keys come first in encounter order, each once."""
        (settings.properties_dir / "region").write_text("factory")
        (settings.properties_dir / "nduid").write_text("p")
        (settings.tokens_dir / "region").write_text("tokens")
        (settings.tokens_dir / "serial").write_text("s")
        (settings.runtime_dir / "serial").write_text("s2")
        (settings.runtime_dir / "extra").write_text("e")

        keys = enumerator.list_keys()

        assert keys[:4] == [
            make_key("nduid"),
            make_key("region"),
            make_key("serial"),
            make_key("extra"),
        ]
        assert keys[4:] == [k for k in COMPUTED_KEYS if k != make_key("nduid")]
        assert len(keys) == len(set(keys))

    def test_public_only(self, enumerator, settings, write_whitelist):
        """Only whitelisted keys are listed on the public channel."""
        (settings.tokens_dir / "serial").write_text("s")
        (settings.tokens_dir / "region").write_text("r")
        write_whitelist([make_key("region"), make_key("version")])

        assert enumerator.list_keys(public_only=True) == [make_key("region"), make_key("version")]
        assert make_key("serial") in enumerator.list_keys()
        # hidden from public listings, still resolvable by the private caller
        assert enumerator.resolver.resolve(make_key("serial")) == "s"

    def test_empty_whitelist_hides_everything(self, enumerator):
        """An empty whitelist lists nothing publicly."""
        assert enumerator.list_keys(public_only=True) == []


class TestListAll:
    """Keys with their resolved values."""

    def test_values_come_from_highest_precedence_source(self, enumerator, settings):
        """Each key appears once with its winning value."""
        (settings.properties_dir / "region").write_text("factory\n")
        (settings.tokens_dir / "region").write_text("tokens")
        (settings.tokens_dir / "config").write_text('{"a": 1}')

        entries = enumerator.list_all()
        by_key = {k: v for entry in entries for k, v in entry.items()}

        assert all(len(entry) == 1 for entry in entries)
        assert len(entries) == len(by_key)
        assert by_key[make_key("region")] == "factory"
        assert by_key[make_key("config")] == {"a": 1}
        assert by_key[make_key("boardType")] == "board-x"
        assert by_key[make_key("prevShutdownClean")] == " "

    def test_public_only(self, enumerator, write_whitelist):
        """Public listings pair only whitelisted keys with their values."""
        write_whitelist([make_key("buildNumber")])
        assert enumerator.list_all(public_only=True) == [{make_key("buildNumber"): "142"}]

    def test_failure_fails_whole_listing(self, settings, fake_query):
        """One unresolvable key fails the whole listing."""
        resolver = SystemPropertyResolver(settings, device_query=fake_query())
        enumerator = SystemPropertyEnumerator(resolver, VisibilityFilter(settings.whitelist_path))
        with pytest.raises(SystemConfigMissing):
            enumerator.list_all()

    def test_default_visibility_is_process_wide(self, resolver, write_whitelist):
        """Without a filter the process-wide whitelist applies."""
        write_whitelist([make_key("version")])
        enumerator = SystemPropertyEnumerator(resolver)
        assert enumerator.list_keys(public_only=True) == [make_key("version")]
