# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr

from .frax import SECONDARY_CONDITIONS, FraxInputs, frax_rows, map_to_frax
from .intake import assemble_profile
from .profile import (
    CKD_G1_2,
    CKD_G3,
    CKD_G4_5,
    CKD_UNKNOWN,
    DOSE_5_TO_75,
    DOSE_GE_75,
    DOSE_LT_5,
    MENOPAUSE_NO,
    MENOPAUSE_PREGNANCY,
    MENOPAUSE_YES,
    SEX_FEMALE,
    SEX_MALE,
    T_25_TO_10,
    T_33_TO_25,
    T_GE_10,
    T_LT_33,
    T_UNKNOWN,
)
from .report import OsteoReportGenerator, frax_table_markdown
from .rules import load_rules
from .version import APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)

SEX_CHOICES = [("weiblich", SEX_FEMALE), ("männlich", SEX_MALE)]
MENOPAUSE_CHOICES = [
    ("nein", MENOPAUSE_NO),
    ("ja", MENOPAUSE_YES),
    ("Schwangerschaft / Stillzeit", MENOPAUSE_PREGNANCY),
]
T_GROUP_CHOICES = [
    ("T < -3.3", T_LT_33),
    ("-3.3 ≤ T < -2.5", T_33_TO_25),
    ("-2.5 ≤ T < -1.0", T_25_TO_10),
    ("T ≥ -1.0", T_GE_10),
    ("nicht gemessen", T_UNKNOWN),
]
CKD_CHOICES = [
    ("G1-2 (eGFR ≥ 60)", CKD_G1_2),
    ("G3 (eGFR 30-59)", CKD_G3),
    ("G4-5 (eGFR < 30)", CKD_G4_5),
    ("unbekannt", CKD_UNKNOWN),
]
DOSE_CHOICES = [
    ("< 5 mg/Tag", DOSE_LT_5),
    ("5 bis < 7.5 mg/Tag", DOSE_5_TO_75),
    ("≥ 7.5 mg/Tag", DOSE_GE_75),
]

CSS = """
.osteo-container { max-width: 1200px; margin: 0 auto; }
#dashboard {
    position: sticky;
    top: 8px;
    z-index: 20;
    background: rgba(255,255,255,0.92);
    backdrop-filter: blur(8px);
    border: 1px solid rgba(0,0,0,0.08);
    border-radius: 12px;
    padding: 12px;
}
.section-card {
    border: 1px solid rgba(0,0,0,0.08);
    border-radius: 12px;
    padding: 12px;
    background: white;
}
.small-note { font-size: 12px; opacity: 0.75; }
"""

EXAMPLE: Dict[str, Any] = {
    "sex": SEX_FEMALE,
    "age": 70,
    "menopause": MENOPAUSE_YES,
    "t_group": T_LT_33,
    "ckd_stage": CKD_G1_2,
    "fx_any": True,
    "fx_severe": True,
    "fx_recent_24m": True,
    "injectable": True,
}


def build_demo(rules_path: Optional[str] = None) -> Tuple[gr.Blocks, str, Any]:
    generator = OsteoReportGenerator(rules=load_rules(rules_path))
    theme = gr.themes.Soft()

    # --- UI registry: ensures mapping is always consistent ---
    field_components: List[Tuple[str, Any]] = []

    def reg(field_id: str, comp: Any) -> Any:
        field_components.append((field_id, comp))
        return comp

    with gr.Blocks(title=f"{APP_NAME} v{APP_VERSION}") as demo:
        gr.HTML(
            f"<div class='osteo-container'><h2 style='margin-bottom:0'>{APP_NAME} "
            f"<span style='opacity:0.6;font-size:14px'>v{APP_VERSION}</span></h2>"
            "<div class='small-note'>Entscheidungsunterstützung • Nicht als alleinige Entscheidungsgrundlage</div></div>"
        )

        error_md = gr.Markdown("", visible=False)

        with gr.Row():
            with gr.Column(scale=6):
                with gr.Tabs():
                    with gr.Tab("Patient"):
                        with gr.Row():
                            reg("sex", gr.Radio(SEX_CHOICES, label="Geschlecht", value=SEX_FEMALE))
                            reg("age", gr.Number(label="Alter (Jahre, < 40 wird als 40 gewertet)", value=65, precision=0))
                        reg("menopause", gr.Dropdown(MENOPAUSE_CHOICES, label="Menopause", value=MENOPAUSE_YES))
                        with gr.Row():
                            reg("t_group", gr.Dropdown(T_GROUP_CHOICES, label="Niedrigster T-Score (LWS/Hüfte)", value=None))
                            reg("ckd_stage", gr.Dropdown(CKD_CHOICES, label="CKD-Stadium", value=None))

                    with gr.Tab("Frakturen"):
                        reg("fx_any", gr.Checkbox(label="Klinische Fragilitätsfraktur"))
                        with gr.Group():
                            reg("fx_severe", gr.Checkbox(label="Wirbelkörper- oder proximale Femurfraktur"))
                            reg("fx_vertebral_severe", gr.Checkbox(label="Schwere Wirbelkörperfraktur (multipel / hochgradig)"))
                            reg("fx_recent_24m", gr.Checkbox(label="Fraktur in den letzten 24 Monaten"))
                        reg("fx_morphological", gr.Checkbox(label="Morphometrische Wirbelkörperfraktur"))
                        reg("fx_morphological_severe", gr.Checkbox(label="Morphometrisch schwer (multipel / hochgradig)"))

                    with gr.Tab("Risikofaktoren"):
                        reg("risk_parent_hip_fx", gr.Checkbox(label="Hüftfraktur eines Elternteils"))
                        reg("risk_frax", gr.Checkbox(label="FRAX: hohes 10-Jahres-Risiko"))
                        reg("risk_diabetes", gr.Checkbox(label="Diabetes mellitus"))
                        reg("risk_ckd", gr.Checkbox(label="Chronische Nierenerkrankung"))
                        reg("risk_copd", gr.Checkbox(label="COPD"))
                        reg("risk_antihormonal", gr.Checkbox(label="Antihormonelle Therapie (Mamma-/Prostatakarzinom)"))
                        reg("frax_early_menopause", gr.Checkbox(label="Vorzeitige Menopause"))

                    with gr.Tab("Glukokortikoide"):
                        reg("steroid", gr.Checkbox(label="Glukokortikoidtherapie"))
                        reg("steroid_current", gr.Checkbox(label="aktuell laufend"))
                        reg("steroid_dose", gr.Radio(DOSE_CHOICES, label="Prednisolon-Äquivalent", value=None))

                    with gr.Tab("Sicherheit"):
                        reg("cv_event_recent_12m", gr.Checkbox(label="Herzinfarkt/Schlaganfall in den letzten 12 Monaten"))
                        reg("hypocalcemia_risk", gr.Checkbox(label="Hypokalzämie(-risiko)"))
                        reg("hypercalcemia", gr.Checkbox(label="Hyperkalzämie"))
                        reg("contraindication_pth", gr.Checkbox(label="Kontraindikation PTH-Analoga"))
                        reg("injectable", gr.Checkbox(label="Injektionstherapie möglich", value=True))

                with gr.Row():
                    btn_example = gr.Button("Beispiel laden", variant="secondary")
                    btn_generate = gr.Button("Auswerten", variant="primary")

                with gr.Accordion("FRAX-Eingabehilfe", open=False):
                    with gr.Row():
                        frax_alcohol = gr.Checkbox(label="Alkohol ≥ 3 Einheiten/Tag")
                        frax_smoking = gr.Checkbox(label="Aktueller Raucher")
                        frax_ra = gr.Checkbox(label="Rheumatoide Arthritis")
                    frax_secondary = gr.CheckboxGroup(
                        [(label, code) for code, label in SECONDARY_CONDITIONS.items()],
                        label="Sekundäre Osteoporose",
                    )
                    btn_frax = gr.Button("FRAX-Felder anzeigen", variant="secondary")
                    frax_md = gr.Markdown("—")

                with gr.Accordion("Arzneimittel-Information", open=False):
                    drug_select = gr.Dropdown(
                        sorted(info.label for info in generator.drugs.values()),
                        label="Wirkstoff",
                        value=None,
                    )
                    drug_md = gr.Markdown("—")

            with gr.Column(scale=5, elem_id="dashboard"):
                risk_html = gr.HTML("<div>—</div>")
                gr.Markdown("### Therapieziel")
                goal_md = gr.Markdown("—")
                gr.Markdown("### Therapieempfehlung")
                regimen_md = gr.Markdown("—", elem_classes=["section-card"])
                gr.Markdown("### Warnhinweise")
                warnings_md = gr.Markdown("—")
                panels_md = gr.Markdown("—")
                with gr.Accordion("Eingabeprüfung", open=False):
                    validation_md = gr.Markdown("—")

        # --- helpers ---
        def _ui_get_raw(*vals) -> Dict[str, Any]:
            return {fid: v for (fid, _), v in zip(field_components, vals)}

        def _generate(*vals):
            try:
                ui = _ui_get_raw(*vals)
                risk, goal, regimen_out, warn, panels, val = generator.generate_all(ui)
                return risk, goal, regimen_out, warn, panels, val, gr.update(visible=False, value="")
            except Exception:
                tb = traceback.format_exc()
                logger.exception("evaluation failed")
                return "<div>—</div>", "—", "—", "—", "—", "—", gr.update(visible=True, value=f"### Fehler\n```\n{tb}\n```")

        def _frax(alcohol, smoking, ra, secondary, *vals):
            try:
                profile = assemble_profile(_ui_get_raw(*vals), generator.rules)
                extra = FraxInputs.from_selection(bool(alcohol), bool(smoking), bool(ra), secondary or [])
                return frax_table_markdown(frax_rows(map_to_frax(profile, extra)))
            except Exception:
                logger.exception("FRAX mapping failed")
                return f"### Fehler\n```\n{traceback.format_exc()}\n```"

        def _load_example():
            return [EXAMPLE.get(fid, True if fid == "injectable" else None) for fid, _ in field_components]

        # Bind actions
        input_components = [c for _, c in field_components]
        outputs = [risk_html, goal_md, regimen_md, warnings_md, panels_md, validation_md, error_md]

        btn_generate.click(_generate, inputs=input_components, outputs=outputs)
        for comp in input_components:
            comp.change(_generate, inputs=input_components, outputs=outputs)

        btn_example.click(_load_example, outputs=input_components)
        btn_frax.click(
            _frax,
            inputs=[frax_alcohol, frax_smoking, frax_ra, frax_secondary] + input_components,
            outputs=[frax_md],
        )
        drug_select.change(generator.drug_info, inputs=[drug_select], outputs=[drug_md])

    return demo, CSS, theme
