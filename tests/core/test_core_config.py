from __future__ import annotations

import pytest

from study_quiz.core import config as core_config


def test_load_toml_reads_document(tmp_path):
    path = tmp_path / "conf.toml"
    path.write_text('[section]\nname = "value"\n', encoding="utf-8")

    assert core_config.load_toml(path) == {"section": {"name": "value"}}


def test_load_toml_errors(tmp_path):
    with pytest.raises(core_config.TomlConfigError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[section\n", encoding="utf-8")
    with pytest.raises(core_config.TomlConfigError, match="parse"):
        core_config.load_toml(broken)


def test_merge_defaults_overrides_nested_values():
    base = {"a": {"b": 1, "c": 2}, "d": "x"}

    core_config.merge_defaults(base, {"a": {"c": 5}, "d": "y"})

    assert base == {"a": {"b": 1, "c": 5}, "d": "y"}


def test_merge_defaults_rejects_unknown_and_shape_mismatch():
    with pytest.raises(core_config.TomlConfigError, match="a.z"):
        core_config.merge_defaults({"a": {"b": 1}}, {"a": {"z": 1}})
    with pytest.raises(core_config.TomlConfigError, match="Expected table"):
        core_config.merge_defaults({"a": {"b": 1}}, {"a": 1})


def test_write_toml_template_respects_overwrite(tmp_path):
    target = tmp_path / "nested" / "out.toml"

    core_config.write_toml_template(target, template="a = 1\n")
    with pytest.raises(core_config.TomlConfigError):
        core_config.write_toml_template(target, template="a = 2\n")
    core_config.write_toml_template(target, template="a = 3\n", overwrite=True)

    assert target.read_text(encoding="utf-8") == "a = 3\n"


@pytest.mark.parametrize("value", [0, -3, True, "5", 2.5])
def test_require_positive_int_rejects(value):
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_positive_int(value, field="f")


@pytest.mark.parametrize("value", [-1, True, "0", 1.0])
def test_require_non_negative_int_rejects(value):
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_non_negative_int(value, field="f")


def test_require_non_negative_int_accepts_zero():
    assert core_config.require_non_negative_int(0, field="f") == 0
    assert core_config.require_non_negative_int(4, field="f") == 4


def test_validators_accept_valid_values():
    assert core_config.require_positive_int(3, field="f") == 3
    assert core_config.require_bool(False, field="f") is False
    assert core_config.require_float_range(
        1, field="f", min_value=0.0, max_value=2.0
    ) == pytest.approx(1.0)
    assert core_config.require_string("  gpt  ", field="f") == "gpt"


def test_validators_reject_invalid_values():
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_bool("true", field="f")
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_float_range(
            True, field="f", min_value=0.0, max_value=2.0
        )
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_float_range(
            -0.1, field="f", min_value=0.0, max_value=2.0
        )
    with pytest.raises(core_config.TomlConfigError):
        core_config.require_string("", field="f")
