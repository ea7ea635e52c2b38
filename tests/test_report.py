import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dataclasses import replace

from osteo.drugdb import load_drug_table
from osteo.engine import evaluate
from osteo.profile import DOSE_LT_5, PatientProfile
from osteo.regimen import regimen
from osteo.report import (
    NO_INPUT_MD,
    PANEL_BMD_UNKNOWN,
    PANEL_CKD_3,
    PANEL_CKD_45,
    PANEL_FRAX,
    PANEL_GIO,
    PANEL_RARE_CASE,
    PANEL_RECENT_FX,
    PANEL_TRANSITION,
    OsteoReportGenerator,
    drug_info_markdown,
    info_panels,
    linkify_drugs,
    regimen_markdown,
    risk_badge_html,
    warnings_markdown,
)
from osteo.safety import W_CV, W_CV_SELECTED

TABLE = load_drug_table()


def test_risk_badge_labels():
    assert "Sehr hoch" in risk_badge_html("Very High")
    assert "Niedrig" in risk_badge_html("Low")
    assert "Nicht beurteilbar" in risk_badge_html("Unknown")
    assert "—" in risk_badge_html(None)


def test_linkify_longest_label_first():
    text = linkify_drugs("Zoledronsäure oder Bisphosphonat", TABLE)
    assert "[Zoledronsäure](https://" in text
    assert "[Bisphosphonat](https://" in text
    assert linkify_drugs("", TABLE) == ""


def test_regimen_markdown():
    md = regimen_markdown(regimen("{denosumab}", note="Hinweis"), TABLE)
    assert "#### Erstlinie" in md
    assert "[Denosumab](" in md
    assert "<small>Hinweis</small>" in md
    assert md.count("*---*") == 2
    assert regimen_markdown(None, TABLE) == "—"


def test_warnings_markdown_emphasises_critical():
    md = warnings_markdown([W_CV, W_CV_SELECTED])
    assert f"- {W_CV}" in md
    assert f"- **{W_CV_SELECTED}**" in md
    assert warnings_markdown([]) == "—"


def test_info_panels():
    p = PatientProfile(age=60, t_group="ge_-1.0", fx_any=True, fx_recent_24m=True, ckd_stage="g4_5")
    panels = info_panels(p, evaluate(p))
    assert PANEL_FRAX in panels
    assert PANEL_RARE_CASE in panels
    assert PANEL_CKD_45 in panels
    assert PANEL_RECENT_FX in panels
    assert PANEL_CKD_3 not in panels

    p = PatientProfile(sex="female", age=50, menopause="yes", t_group="between_-2.5_-1.0", ckd_stage="g1_2")
    panels = info_panels(p, evaluate(p))
    assert PANEL_TRANSITION in panels
    assert PANEL_CKD_3 not in panels

    # CKD G3 counts as a high-risk factor, so the transition regimen no longer applies
    p = replace(p, ckd_stage="g3")
    panels = info_panels(p, evaluate(p))
    assert PANEL_TRANSITION not in panels
    assert PANEL_CKD_3 in panels

    p = PatientProfile(age=70, t_group="unknown", steroid_current=True, steroid_dose=DOSE_LT_5, ckd_stage="g1_2")
    panels = info_panels(p, evaluate(p))
    assert PANEL_BMD_UNKNOWN in panels
    assert PANEL_GIO in panels
    assert PANEL_FRAX not in panels


def test_drug_info_markdown():
    md = drug_info_markdown(TABLE["romosozumab"])
    assert md.startswith("### Romosozumab")
    assert "**Kontraindikationen**" in md
    assert "- Hypokalzämie" in md
    assert "(KEGG)" in md
    assert drug_info_markdown(None) == "—"


def test_generate_all_without_input():
    gen = OsteoReportGenerator(drugs=TABLE)
    risk_html, goal, reg, warn, panels, validation = gen.generate_all({"age": 70})
    assert goal == NO_INPUT_MD
    assert reg == "—"
    assert "Fehlende Angaben" in validation


def test_generate_all():
    gen = OsteoReportGenerator(drugs=TABLE)
    ui = {"sex": "female", "age": 70, "menopause": "yes", "t_group": "lt_-3.3", "ckd_stage": "g1_2", "injectable": True}
    risk_html, goal, reg, warn, panels, validation = gen.generate_all(ui)
    assert "Sehr hoch" in risk_html
    assert "T-Score > -2.5" in goal
    assert "[Romosozumab](" in reg
    assert warn == "—"
    assert validation == "—"
    assert "Denosumab" in gen.drug_info("Denosumab")
