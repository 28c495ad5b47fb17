"""Engine configuration loading tests."""

from __future__ import annotations

from backlinker.engine.config import DEFAULTS, load_config


def test_defaults_without_file():
    config = load_config(None)
    assert config.int_value("max_candidates") == 15
    assert config.immediate_link_check is False
    assert config.raw == DEFAULTS
    assert config.raw is not DEFAULTS


def test_yaml_overrides_merge_with_defaults(tmp_path):
    path = tmp_path / "backlinker.yaml"
    path.write_text(
        "link_check_mode: immediate\n"
        "site_name_fragments: [Acme Clinic]\n"
        "temperatures:\n"
        "  confirm: 0.1\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.immediate_link_check is True
    assert config.phrases("site_name_fragments") == ["acme clinic"]
    assert config.get("temperatures") == {"keywords": 0.2, "confirm": 0.1}
    assert config.float_value("politeness_delay") == 1.5


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml").raw == DEFAULTS
