import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from osteo.engine import build_context, evaluate
from osteo.goals import GOAL_CASCADE, determine_goal
from osteo.profile import DOSE_LT_5, PatientProfile
from osteo.regimen import RegimenLine, regimen
from osteo.safety import (
    W_AH_PTH,
    W_AH_PTH_SELECTED,
    W_AH_SERM,
    W_AH_SERM_SELECTED,
    W_CKD_DENOSUMAB,
    W_CKD_ORAL_BP,
    W_CKD_UNKNOWN,
    W_CV,
    W_CV_SELECTED,
    W_HYPERCALCEMIA,
    W_HYPOCALCEMIA,
    W_PTH_CONTRA,
    W_PTH_CONTRA_SELECTED,
    generate_warnings,
    is_critical,
)


def _goal(**kw):
    ev = evaluate(PatientProfile(**kw))
    return ev.goal_rule, ev.goal


def test_goal_cascade_ids():
    assert GOAL_CASCADE.rule_ids() == [f"G{i:02d}" for i in range(1, 12)]


def test_goal_fracture_targets():
    rule_id, goal = _goal(age=70, t_group="between_-2.5_-1.0", fx_any=True)
    assert rule_id == "G02"
    assert "+3 %" in goal
    rule_id, goal = _goal(age=70, t_group="ge_-1.0", fx_morphological=True)
    assert rule_id == "G03"
    assert "Folgefrakturen" in goal


def test_goal_early_menopause_first():
    assert _goal(age=41, menopause="yes", t_group="lt_-3.3", fx_any=True)[0] == "G01"


def test_goal_gio_and_antihormonal():
    assert _goal(age=70, t_group="ge_-1.0", steroid_current=True, steroid_dose=DOSE_LT_5)[0] == "G04"
    rule_id, goal = _goal(age=60, t_group="between_-2.5_-1.0", risk_antihormonal=True, risk_frax=True)
    assert rule_id == "G05"
    assert goal.endswith("-1.5")


def test_goal_by_bmd():
    assert _goal(age=70, t_group="between_-3.3_-2.5")[0] == "G07"
    assert _goal(age=60, t_group="between_-2.5_-1.0", risk_diabetes=True)[0] == "G08"
    assert _goal(age=60, t_group="ge_-1.0")[0] == "G09"
    assert _goal(age=60, t_group="between_-2.5_-1.0")[0] == "G10"


def test_goal_default_without_risk_tier():
    ctx = build_context(PatientProfile(age=60, t_group="between_-2.5_-1.0"))
    assert determine_goal(ctx)[0] == "G11"


# --- warnings ---

DENO_BP = regimen("{denosumab}", "{bisphosphonate}")


def test_ckd_warnings():
    assert generate_warnings(PatientProfile(ckd_stage="g4_5"), DENO_BP) == [W_CKD_ORAL_BP, W_CKD_DENOSUMAB]
    assert generate_warnings(PatientProfile(ckd_stage="unknown"), DENO_BP) == [W_CKD_UNKNOWN]
    assert generate_warnings(PatientProfile(ckd_stage="not-a-stage"), DENO_BP) == [W_CKD_UNKNOWN]
    assert generate_warnings(PatientProfile(ckd_stage="g3"), DENO_BP) == []
    assert generate_warnings(PatientProfile(ckd_stage="g1_2"), None) == []


def test_calcium_warnings_order():
    w = generate_warnings(PatientProfile(ckd_stage="g1_2", hypocalcemia_risk=True, hypercalcemia=True), None)
    assert w == [W_HYPOCALCEMIA, W_HYPERCALCEMIA]


def test_pth_contraindication_escalates_on_first_two_lines():
    p = PatientProfile(ckd_stage="g1_2", contraindication_pth=True)
    assert generate_warnings(p, regimen("{teriparatide}")) == [W_PTH_CONTRA, W_PTH_CONTRA_SELECTED]
    assert generate_warnings(p, regimen("{denosumab}", "{abaloparatide}")) == [W_PTH_CONTRA, W_PTH_CONTRA_SELECTED]
    assert generate_warnings(p, regimen("{denosumab}", "{bisphosphonate}", "{teriparatide}")) == [W_PTH_CONTRA]
    assert generate_warnings(p, None) == [W_PTH_CONTRA]


def test_checks_agent_tags_not_text():
    p = PatientProfile(ckd_stage="g1_2", contraindication_pth=True)
    untagged = regimen(RegimenLine("Teriparatid"))
    assert generate_warnings(p, untagged) == [W_PTH_CONTRA]


def test_antihormonal_warnings():
    p = PatientProfile(ckd_stage="g1_2", risk_antihormonal=True)
    assert generate_warnings(p, DENO_BP) == [W_AH_PTH, W_AH_SERM]
    w = generate_warnings(p, regimen("{teriparatide}", "{denosumab}", "{serm}"))
    assert w == [W_AH_PTH, W_AH_SERM, W_AH_PTH_SELECTED, W_AH_SERM_SELECTED]


def test_cv_warning_first_line_only():
    p = PatientProfile(ckd_stage="g1_2", cv_event_recent_12m=True)
    assert generate_warnings(p, regimen("{romosozumab}")) == [W_CV, W_CV_SELECTED]
    assert generate_warnings(p, regimen("{denosumab}", "{romosozumab}")) == [W_CV]
    assert is_critical(W_CV_SELECTED)
    assert not is_critical(W_CV)


def test_full_order():
    p = PatientProfile(
        ckd_stage="g4_5", hypocalcemia_risk=True, hypercalcemia=True, contraindication_pth=True,
        risk_antihormonal=True, cv_event_recent_12m=True,
    )
    w = generate_warnings(p, regimen("{romosozumab} / {teriparatide}", "{serm}"))
    assert w == [
        W_CKD_ORAL_BP, W_CKD_DENOSUMAB, W_HYPOCALCEMIA, W_HYPERCALCEMIA,
        W_PTH_CONTRA, W_PTH_CONTRA_SELECTED,
        W_AH_PTH, W_AH_SERM, W_AH_PTH_SELECTED, W_AH_SERM_SELECTED,
        W_CV, W_CV_SELECTED,
    ]
