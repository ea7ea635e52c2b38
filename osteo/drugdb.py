# -*- coding: utf-8 -*-
"""
Drug reference table (textdb/drugs.yaml).

Read-only lookup for the rendering layer: indication, contraindications,
cautions and a link to the current product information. The decision core
never reads it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .regimen import AGENT_LABELS

logger = logging.getLogger(__name__)

DRUGS_SCHEMA_VERSION = 1
DEFAULT_DRUGS_PATH = Path(__file__).resolve().parent / "textdb" / "drugs.yaml"


@dataclass(frozen=True)
class DrugInfo:
    code: str
    label: str
    indication: str = ""
    contraindication: List[str] = field(default_factory=list)
    caution: List[str] = field(default_factory=list)
    link: str = ""


def load_drug_yaml(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    path = Path(path) if path is not None else DEFAULT_DRUGS_PATH
    with path.open("r", encoding="utf-8") as f:
        obj = yaml.safe_load(f) or {}
    if not isinstance(obj, dict):
        raise ValueError(f"{path.name}: YAML-Wurzel muss ein Mapping sein")
    ver = obj.get("schema_version")
    if ver != DRUGS_SCHEMA_VERSION:
        raise ValueError(f"{path.name}: schema_version erwartet {DRUGS_SCHEMA_VERSION}, gefunden {ver}")
    return obj


def validate_drug_table(obj: Dict[str, Any]) -> List[str]:
    """Returns a list of problems; empty when the table is usable."""
    errors: List[str] = []
    drugs = obj.get("drugs")
    if not isinstance(drugs, dict) or not drugs:
        return ["[drugs] fehlt oder ist leer"]
    for code, entry in drugs.items():
        if code not in AGENT_LABELS:
            errors.append(f"[{code}] unbekannter Wirkstoff-Code")
        if not isinstance(entry, dict):
            errors.append(f"[{code}] Eintrag ist kein Mapping")
            continue
        if not entry.get("label"):
            errors.append(f"[{code}] label fehlt")
        for key in ("contraindication", "caution"):
            if key in entry and not isinstance(entry[key], list):
                errors.append(f"[{code}] {key} muss eine Liste sein")
        link = entry.get("link", "")
        if link and not str(link).startswith("https://"):
            errors.append(f"[{code}] link ist keine https-URL: {link}")
    for code in AGENT_LABELS:
        if code not in drugs:
            errors.append(f"[{code}] kein Eintrag in der Arzneimitteltabelle")
    return errors


def load_drug_table(path: Optional[Union[str, Path]] = None) -> Dict[str, DrugInfo]:
    obj = load_drug_yaml(path)
    for err in validate_drug_table(obj):
        logger.warning(f"drug table: {err}")
    table: Dict[str, DrugInfo] = {}
    for code, entry in (obj.get("drugs") or {}).items():
        if not isinstance(entry, dict) or not entry.get("label"):
            continue
        table[code] = DrugInfo(
            code=code,
            label=str(entry["label"]),
            indication=str(entry.get("indication", "") or ""),
            contraindication=[str(x) for x in entry.get("contraindication") or []],
            caution=[str(x) for x in entry.get("caution") or []],
            link=str(entry.get("link", "") or ""),
        )
    logger.debug(f"drug table: {len(table)} entries loaded")
    return table


def find_by_label(table: Dict[str, DrugInfo], label: str) -> Optional[DrugInfo]:
    for info in table.values():
        if info.label == label:
            return info
    return None
