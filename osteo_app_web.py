#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Osteoporose-Therapieassistent (Web)

- Gradio-Formular: Patientendaten, Frakturen, Risikofaktoren, Glukokortikoide, Sicherheit
- Live-Auswertung: Frakturrisiko, Therapieziel, Erst-/Zweit-/Drittlinie, Warnhinweise
- FRAX-Eingabehilfe und Arzneimittel-Kurzinformationen

Optional: OSTEO_RULES=<pfad/zu/rules.yaml> passt einzelne Altersgrenzen an.

Hinweis: Dieses Tool ist als Assistenzsystem gedacht und ersetzt keine ärztliche Beurteilung.

Start:
    python osteo_app_web.py
"""
from __future__ import annotations

import logging
import os
import socket

from osteo.ui import build_demo


def _find_free_port(preferred: int) -> int:
    for port in range(preferred, preferred + 50):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(("0.0.0.0", port))
                return port
            except OSError:
                continue
    return preferred


def main():
    logging.basicConfig(
        level=os.environ.get("OSTEO_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    demo, css, theme = build_demo(os.environ.get("OSTEO_RULES"))
    port = int(os.environ.get("PORT", os.environ.get("GRADIO_SERVER_PORT", "7860")))
    port = _find_free_port(port)

    # Gradio 6+: css/theme are passed to launch
    demo.launch(
        server_name="0.0.0.0",
        server_port=port,
        share=False,
        theme=theme,
        css=css,
    )


if __name__ == "__main__":
    main()
