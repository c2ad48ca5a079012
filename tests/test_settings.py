"""Tests for local settings and store locations."""

import json

import pytest

from pdv_core.exceptions import ConfigError, ValidationError
from pdv_core.locations import LocationRegistry, get_location
from pdv_core.settings import AppSettings, OperatorSession, SettingsStore, SoundSettings


class TestSettingsStore:
    def test_defaults_when_missing(self, tmp_path) -> None:
        settings = SettingsStore(tmp_path / "settings.json").load()

        assert settings.operator is None
        assert settings.order_sound.volume == 0.7
        assert settings.printer.paper_width == "80mm"
        assert settings.printer.page_size == 300
        assert settings.printer.auto_print_delivery is False

    def test_save_and_load(self, tmp_path) -> None:
        store = SettingsStore(tmp_path / "settings.json")
        settings = AppSettings()
        settings.printer.font_size = 16
        settings.chat_sound.enabled = False
        store.save(settings)

        loaded = store.load()
        assert loaded.printer.font_size == 16
        assert loaded.chat_sound.enabled is False
        assert loaded.order_sound.enabled is True

    def test_partial_file_merges_over_defaults(self, tmp_path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"printer": {"margin_left": 3, "legacy": True}}), encoding="utf-8")

        loaded = SettingsStore(path).load()
        assert loaded.printer.margin_left == 3
        assert loaded.printer.margin_top == 1

    def test_corrupted_file_yields_defaults(self, tmp_path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        assert SettingsStore(path).load() == AppSettings()

    def test_login_and_logout(self, tmp_path) -> None:
        store = SettingsStore(tmp_path / "settings.json")
        store.login(
            {
                "id": "op-1",
                "name": "Ana",
                "code": "01",
                "password_hash": "secret",
                "permissions": {"can_cancel": True},
            }
        )

        operator = store.load().operator
        assert operator.name == "Ana"
        assert operator.has_permission("can_cancel")
        assert not operator.has_permission("can_discount")
        assert operator.logged_in_at is not None
        assert "secret" not in (tmp_path / "settings.json").read_text(encoding="utf-8")

        store.logout()
        assert store.load().operator is None


def test_operator_requires_id_and_name() -> None:
    with pytest.raises(ValidationError):
        OperatorSession.from_dict({"name": "Ana"})


def test_volume_range() -> None:
    with pytest.raises(ValidationError):
        SoundSettings(volume=1.5)


class TestLocations:
    def test_tables_per_location(self) -> None:
        assert get_location("loja1").entries_table == "pdv_cash_entries"
        assert get_location("loja2").sales_table == "store2_sales"
        assert get_location("loja2").orders_table is None

    def test_unknown_location(self) -> None:
        with pytest.raises(ConfigError, match="loja3"):
            get_location("loja3")

    def test_delivery_location(self) -> None:
        assert LocationRegistry().delivery_location().name == "loja1"
