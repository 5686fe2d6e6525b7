# engine/recruitment/reconciliation.py
"""
Réconciliation du compteur dénormalisé current_responses.

Le compteur est un cache : la vérité est count(responses.form_ref == id).
On compare ici les deux et on repère les candidatures orphelines
(form_ref ne correspondant à aucun formulaire existant).

Entrées déjà agrégées par le repository ; aucune I/O ici.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping


@dataclass
class CounterCheck:
    form_id:     str
    title:       Dict[str, str]
    stored:      int
    live:        int

    @property
    def mismatch(self) -> bool:
        return self.stored != self.live

    @property
    def drift(self) -> int:
        return self.stored - self.live


@dataclass
class AuditReport:
    forms:          List[CounterCheck] = field(default_factory=list)
    orphan_ids:     List[str]          = field(default_factory=list)

    @property
    def mismatches(self) -> List[CounterCheck]:
        return [c for c in self.forms if c.mismatch]

    @property
    def is_consistent(self) -> bool:
        return not self.mismatches and not self.orphan_ids


def check_counters(forms: Iterable, live_counts: Mapping[str, int]) -> List[CounterCheck]:
    return [
        CounterCheck(
            form_id=form.id,
            title=form.title or {},
            stored=form.current_responses or 0,
            live=live_counts.get(form.id, 0),
        )
        for form in forms
    ]


def find_orphans(response_refs: Mapping[str, str], form_ids: Iterable[str]) -> List[str]:
    """response_refs : {response_id: form_ref}. Renvoie les ids orphelins triés."""
    known = set(form_ids)
    return sorted(rid for rid, ref in response_refs.items() if ref not in known)


def build_report(forms: List, live_counts: Mapping[str, int], response_refs: Mapping[str, str]) -> AuditReport:
    return AuditReport(
        forms=check_counters(forms, live_counts),
        orphan_ids=find_orphans(response_refs, [f.id for f in forms]),
    )
