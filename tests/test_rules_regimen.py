import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from osteo.profile import PatientProfile, derive_flags
from osteo.regimen import (
    BISPHOSPHONATE,
    DENOSUMAB,
    SERM,
    TERIPARATIDE,
    extract_placeholders,
    line,
    regimen,
)
from osteo.rules import DEFAULT_RULES, deep_merge_dict, load_rules, rule_value


def test_load_rules_defaults(tmp_path):
    assert load_rules() == DEFAULT_RULES
    assert load_rules(tmp_path / "missing.yaml") == DEFAULT_RULES
    # copies, not the module dict
    assert load_rules() is not DEFAULT_RULES


def test_load_rules_override(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("schema_version: 1\nage:\n  serm_note_ge: 75\n", encoding="utf-8")
    rules = load_rules(path)
    assert rules["age"]["serm_note_ge"] == 75
    assert rules["age"]["floor"] == 40
    assert rules["gio"] == DEFAULT_RULES["gio"]


def test_load_rules_schema_mismatch(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("age:\n  floor: 30\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_rules(path)


def test_rule_value_fallback():
    assert rule_value({}, "gio", "senior_ge") == 65
    assert rule_value({"gio": {"senior_ge": 70}}, "gio", "senior_ge") == 70
    assert deep_merge_dict({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}}) == {"a": {"b": 1, "c": 3}}


def test_derived_fracture_predicates():
    f = derive_flags(PatientProfile(fx_morphological=True))
    assert f.has_fracture_history and f.has_fracture_extended and f.has_fracture_any_kind

    f = derive_flags(PatientProfile(fx_recent_24m=True))
    assert not f.has_fracture_history
    assert f.has_fracture_extended and f.has_fracture_any_kind

    f = derive_flags(PatientProfile(fx_severe=True))
    assert not f.has_fracture_history and not f.has_fracture_extended
    assert f.has_fracture_any_kind


def test_derived_bmd_flags():
    assert derive_flags(PatientProfile(t_group="lt_-3.3")).is_severe_osteoporosis
    assert derive_flags(PatientProfile(t_group="between_-3.3_-2.5")).is_osteoporosis
    assert derive_flags(PatientProfile(t_group="between_-2.5_-1.0")).is_osteopenia
    assert derive_flags(PatientProfile(t_group="ge_-1.0")).is_normal
    assert derive_flags(PatientProfile(t_group="")).is_bmd_unknown


def test_early_menopause_window():
    assert derive_flags(PatientProfile(age=40, menopause="yes")).is_early_menopause_rule
    assert derive_flags(PatientProfile(age=44, frax_early_menopause=True)).is_early_menopause_rule
    assert not derive_flags(PatientProfile(age=45, menopause="yes")).is_early_menopause_rule
    assert not derive_flags(PatientProfile(age=42, menopause="no")).is_early_menopause_rule


def test_line_templates():
    ln = line("{denosumab} oder {bisphosphonate} (oral/i.v.)")
    assert ln.text == "Denosumab oder Bisphosphonat (oral/i.v.)"
    assert ln.agents == {DENOSUMAB, BISPHOSPHONATE}
    assert extract_placeholders("{serm} / {serm} {denosumab}") == ["denosumab", "serm"]
    with pytest.raises(KeyError):
        line("{aspirin}")


def test_regimen_agents_by_position():
    r = regimen("{teriparatide}", "---", "{serm} (nur lumbale Osteoporose)", note="n", rule_id="X")
    assert r.second_line.is_empty
    assert r.agents(1) == {TERIPARATIDE}
    assert r.agents(2) == frozenset()
    assert r.agents(1, 3) == {TERIPARATIDE, SERM}
    assert r.to_dict()["rule_id"] == "X"
    assert r.with_rule("Y").rule_id == "Y"


def test_load_rules_rejects_non_mapping_root(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("- schema_version\n- 1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_rules(path)
    path.write_text("42\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_rules(path)
