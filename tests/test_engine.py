import itertools
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dataclasses import replace

from osteo.classify import RISK_HIGH, RISK_LOW, RISK_UNKNOWN, RISK_VERY_HIGH
from osteo.engine import build_context, evaluate
from osteo.profile import DOSE_5_TO_75, DOSE_GE_75, DOSE_LT_5, PatientProfile
from osteo.regimen import PTH_ANALOGS, ROMOSOZUMAB
from osteo.safety import W_CKD_UNKNOWN, W_PTH_CONTRA_SELECTED
from osteo.treatment import is_main_anabolic_rule

TIER_ORDER = [RISK_LOW, RISK_HIGH, RISK_VERY_HIGH]

FLAG_NAMES = [
    "fx_any", "fx_morphological", "risk_antihormonal", "risk_diabetes",
    "cv_event_recent_12m", "contraindication_pth", "injectable", "steroid_current",
]


def _profiles_with_flags(**base):
    for values in itertools.product([False, True], repeat=len(FLAG_NAMES)):
        kw = dict(zip(FLAG_NAMES, values))
        if kw["steroid_current"]:
            kw["steroid_dose"] = DOSE_GE_75
        kw.update(base)
        yield PatientProfile(**kw)


def test_unknown_terminal():
    ev = evaluate(PatientProfile(age=60, t_group="unknown"))
    assert ev.risk == RISK_UNKNOWN
    assert ev.is_unknown
    assert ev.treatment is None
    assert ev.goal is None
    assert ev.warnings == [W_CKD_UNKNOWN]


def test_unknown_with_only_extended_fractures():
    # recent / severe flags without fx_any or morphometric do not lift the terminal state
    ev = evaluate(PatientProfile(age=60, t_group="unknown", fx_recent_24m=True, ckd_stage="g1_2"))
    assert ev.risk == RISK_UNKNOWN
    assert ev.warnings == []


def test_invalid_band_counts_as_unknown():
    assert evaluate(PatientProfile(age=60, t_group="-9")).risk == RISK_UNKNOWN


def test_unknown_bmd_with_fracture_is_classified():
    ev = evaluate(PatientProfile(age=60, t_group="unknown", fx_any=True))
    assert ev.risk == RISK_HIGH
    assert ev.treatment is not None
    assert ev.goal_rule == "G03"


def test_severe_osteoporosis_always_very_high():
    for ages in (45, 60, 80):
        for p in _profiles_with_flags(age=ages, t_group="lt_-3.3", menopause="yes"):
            assert evaluate(p).risk == RISK_VERY_HIGH


def test_unknown_bmd_without_fracture_always_unknown():
    for p in _profiles_with_flags(age=60, t_group="unknown"):
        if p.fx_any or p.fx_morphological:
            continue
        ev = evaluate(p)
        assert ev.risk == RISK_UNKNOWN
        assert ev.treatment is None and ev.goal is None


def test_high_risk_factor_never_lowers_tier():
    lows = [
        PatientProfile(age=60, t_group="ge_-1.0"),
        PatientProfile(age=60, t_group="between_-2.5_-1.0"),
        PatientProfile(age=50, sex="male", t_group="between_-2.5_-1.0"),
    ]
    for p in lows:
        before = evaluate(p).risk
        assert before == RISK_LOW
        for flag in ("risk_frax", "risk_parent_hip_fx", "risk_diabetes", "risk_ckd", "risk_copd", "risk_steroid"):
            after = evaluate(replace(p, **{flag: True})).risk
            assert TIER_ORDER.index(after) >= TIER_ORDER.index(before)


def test_idempotent():
    for p in _profiles_with_flags(age=70, t_group="between_-2.5_-1.0"):
        assert evaluate(p) == evaluate(p)
        assert evaluate(p).to_dict() == evaluate(p).to_dict()


PTH_GRID_FLAGS = ["fx_any", "fx_morphological", "cv_event_recent_12m", "injectable", "risk_antihormonal", "risk_diabetes"]


def _pth_contraindicated_profiles():
    bands = ["lt_-3.3", "between_-3.3_-2.5", "between_-2.5_-1.0", "ge_-1.0", "unknown"]
    doses = [None, DOSE_LT_5, DOSE_5_TO_75, DOSE_GE_75]
    for band, age, dose in itertools.product(bands, (50, 70), doses):
        for values in itertools.product([False, True], repeat=len(PTH_GRID_FLAGS)):
            kw = dict(zip(PTH_GRID_FLAGS, values))
            yield PatientProfile(
                sex="female", age=age, menopause="yes", t_group=band,
                steroid_current=dose is not None, steroid_dose=dose,
                contraindication_pth=True, **kw,
            )


def test_pth_contraindication_never_selects_pth():
    for p in _pth_contraindicated_profiles():
        ev = evaluate(p)
        if ev.treatment is not None:
            assert not ev.treatment.agents() & PTH_ANALOGS, ev.treatment.rule_id
        assert W_PTH_CONTRA_SELECTED not in ev.warnings


def test_pth_contraindication_moves_anabolic_to_romosozumab():
    checked = 0
    for p in _pth_contraindicated_profiles():
        if p.cv_event_recent_12m or not p.injectable:
            continue
        ev = evaluate(p)
        if ev.risk == RISK_VERY_HIGH and is_main_anabolic_rule(build_context(p)):
            assert ev.treatment.agents(1) == {ROMOSOZUMAB}, ev.treatment.rule_id
            checked += 1
    assert checked > 0


def test_context_computed_once():
    p = PatientProfile(age=60, t_group="between_-2.5_-1.0", steroid_current=True, steroid_dose=DOSE_GE_75)
    ctx = build_context(p)
    assert ctx.gio is not None
    assert ctx.risk is None
    assert ctx.with_risk(RISK_HIGH).gio is ctx.gio


def test_to_dict():
    d = evaluate(PatientProfile(age=70, t_group="lt_-3.3")).to_dict()
    assert d["schema_version"] == 1
    assert d["risk"] == RISK_VERY_HIGH
    assert d["risk_rule"] == "R01"
    assert d["treatment"]["rule_id"] == "T09-MAIN"
    assert d["treatment"]["agents"]["second_line"] == ["denosumab"]
    assert isinstance(d["warnings"], list)
    assert evaluate(PatientProfile(t_group="unknown")).to_dict()["treatment"] is None


def test_custom_rules_change_cutoffs():
    rules = {"age": {"serm_note_ge": 70}}
    ev = evaluate(PatientProfile(age=72, t_group="between_-3.3_-2.5"), rules)
    assert "SERM" in ev.treatment.note
    ev = evaluate(PatientProfile(age=72, t_group="between_-3.3_-2.5"))
    assert "SERM" not in ev.treatment.note
