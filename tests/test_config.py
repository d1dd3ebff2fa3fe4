from pathlib import Path
import json

import pytest

from battery_segment.config import (
    ConfigManager,
    DEFAULT_SEGMENT_CONFIG,
    SegmentConfig,
    parse_segment_config,
)


def test_default_segment_config(tmp_path: Path):
    manager = ConfigManager(tmp_path / "segment.json")
    config = manager.get_segment_config()
    assert config == DEFAULT_SEGMENT_CONFIG
    assert config.display_charging is True
    assert config.display_error is False
    assert config.colorize_background is False
    assert config.foreground_templates == ()


def test_set_segment_config_persists(tmp_path: Path):
    config_file = tmp_path / "segment.json"
    manager = ConfigManager(config_file)
    updated = manager.set_segment_config(
        {
            "charging_icon": "charging ",
            "display_error": True,
            "charging_color": "#123456",
            "foreground_templates": ["{% if percentage < 10 %}red{% endif %}"],
        }
    )
    assert updated.charging_icon == "charging "
    assert updated.foreground_templates == ("{% if percentage < 10 %}red{% endif %}",)
    # Reload to ensure persistence
    reloaded = ConfigManager(config_file)
    assert reloaded.get_segment_config() == updated
    stored = json.loads(config_file.read_text())
    assert stored["segment"]["charging_color"] == "#123456"


def test_partial_update_keeps_existing_values(tmp_path: Path):
    manager = ConfigManager(tmp_path / "segment.json")
    manager.set_segment_config({"discharging_icon": "going down ", "display_error": True})
    updated = manager.set_segment_config({"display_charging": False})
    assert updated.discharging_icon == "going down "
    assert updated.display_error is True
    assert updated.display_charging is False


def test_camel_case_options_accepted():
    config = parse_segment_config(
        {
            "chargingIcon": "charging ",
            "chargedIcon": "charged ",
            "dischargingIcon": "going down ",
            "displayError": True,
            "displayCharging": False,
            "colorBackground": True,
            "chargingColor": "#123456",
            "dischargingColor": "#765432",
            "chargedColor": "#248644",
            "backgroundTemplates": ["{{ 'x' }}"],
        }
    )
    assert config.charging_icon == "charging "
    assert config.charged_icon == "charged "
    assert config.discharging_icon == "going down "
    assert config.display_error is True
    assert config.display_charging is False
    assert config.colorize_background is True
    assert config.charged_color == "#248644"
    assert config.background_templates == ("{{ 'x' }}",)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("yes", True), ("off", False), (1, True), (0, False), ("", False)],
)
def test_flags_parse_loosely(raw, expected):
    assert parse_segment_config({"display_error": raw}).display_error is expected


def test_single_template_string_becomes_list():
    config = parse_segment_config({"foreground_templates": "{{ 'red' }}"})
    assert config.foreground_templates == ("{{ 'red' }}",)


def test_blank_colour_clears_value():
    base = SegmentConfig(charging_color="#123456")
    assert parse_segment_config({"charging_color": "  "}, default=base).charging_color is None


@pytest.mark.parametrize(
    "payload",
    [
        {"display_error": "maybe"},
        {"charging_icon": 5},
        {"foreground_templates": [1, 2]},
        {"foreground_templates": 12},
        {"charged_color": ["#fff"]},
    ],
)
def test_invalid_options_rejected(payload):
    with pytest.raises(ValueError):
        parse_segment_config(payload)


def test_invalid_update_does_not_persist(tmp_path: Path):
    config_file = tmp_path / "segment.json"
    manager = ConfigManager(config_file)
    with pytest.raises(ValueError):
        manager.set_segment_config({"display_charging": "sometimes"})
    assert manager.get_segment_config() == DEFAULT_SEGMENT_CONFIG
    assert not config_file.exists()


def test_corrupt_file_raises_runtime_error(tmp_path: Path):
    config_file = tmp_path / "segment.json"
    config_file.write_text("{not json")
    with pytest.raises(RuntimeError):
        ConfigManager(config_file)


@pytest.mark.parametrize(
    "stored",
    [
        {"segment": {"chargingIcon": "charging ", "display_error": True}},
        {"chargingIcon": "charging ", "display_error": True},
    ],
)
def test_load_accepts_wrapped_and_flat_files(tmp_path: Path, stored):
    config_file = tmp_path / "segment.json"
    config_file.write_text(json.dumps(stored))
    config = ConfigManager(config_file).get_segment_config()
    assert config.charging_icon == "charging "
    assert config.display_error is True


def test_reset_restores_defaults(tmp_path: Path):
    manager = ConfigManager(tmp_path / "segment.json")
    manager.set_segment_config({"display_error": True})
    assert manager.reset() == DEFAULT_SEGMENT_CONFIG
    assert ConfigManager(tmp_path / "segment.json").get_segment_config() == DEFAULT_SEGMENT_CONFIG


def test_segment_config_to_dict_round_trips():
    config = SegmentConfig(charging_icon="c ", foreground_templates=("a", "b"))
    assert parse_segment_config(config.to_dict()) == config
