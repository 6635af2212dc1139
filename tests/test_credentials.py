"""Tests for credential storage and resolution"""

import stat

from viki.auth import CredentialResolver, CredentialStore
from viki.config import ProviderProfile


def profile(name="work", ref="work-key"):
    return ProviderProfile(name=name, kind="openai", api_key_ref=ref, model="gpt-4")


class TestCredentialStore:
    def test_set_get_delete(self, credential_store):
        credential_store.set("work-key", "sk-123")

        assert credential_store.get("work-key") == "sk-123"
        assert credential_store.list() == ["work-key"]
        assert credential_store.delete("work-key") is True
        assert credential_store.get("work-key") is None
        assert credential_store.delete("work-key") is False

    def test_file_is_private(self, credential_store):
        credential_store.set("k", "v")

        mode = stat.S_IMODE(credential_store.credentials_file.stat().st_mode)
        assert mode == 0o600

    def test_legacy_dict_entry(self, credential_store):
        credential_store.credentials_file.write_text('{"old": {"api_key": "sk-old"}}')

        assert credential_store.get("old") == "sk-old"

    def test_unreadable_file_is_empty(self, credential_store):
        credential_store.credentials_file.write_text("garbage")

        assert credential_store.get("anything") is None
        assert credential_store.list() == []

    def test_non_utf8_file_is_empty(self, credential_store):
        credential_store.credentials_file.write_bytes(b'{"work": "\xff\xfe"}')

        assert credential_store.get("work") is None
        assert credential_store.list() == []


class TestCredentialResolver:
    def test_provider_env_wins(self, credential_store):
        credential_store.set("work-key", "stored")
        resolver = CredentialResolver(
            credential_store,
            environ={"VIKI_WORK_API_KEY": "specific", "VIKI_API_KEY": "generic"},
        )

        assert resolver.resolve(profile()) == "specific"

    def test_generic_env_second(self, credential_store):
        credential_store.set("work-key", "stored")
        resolver = CredentialResolver(credential_store, environ={"VIKI_API_KEY": "generic"})

        assert resolver.resolve(profile()) == "generic"

    def test_store_last(self, credential_store):
        credential_store.set("work-key", "stored")
        resolver = CredentialResolver(credential_store, environ={})

        assert resolver.resolve(profile()) == "stored"

    def test_missing_is_empty(self, credential_store):
        resolver = CredentialResolver(credential_store, environ={})

        assert resolver.resolve(profile()) == ""

    def test_env_name_normalized(self, credential_store):
        resolver = CredentialResolver(credential_store, prefix="SDD", environ={"SDD_MY_OPENAI_API_KEY": "k"})

        assert resolver.env_names("my-openai") == ["SDD_MY_OPENAI_API_KEY", "SDD_API_KEY"]
        assert resolver.resolve(profile(name="my-openai")) == "k"
