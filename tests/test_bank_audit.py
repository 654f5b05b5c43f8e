from __future__ import annotations

from pathlib import Path

import k53_core.audit_bank as audit_bank
from k53_core import config

from tests.conftest import build_synthetic_bank


def test_exact_official_pool_has_no_warnings(monkeypatch):
    monkeypatch.setattr(config, "BANK_MIN_PER_CATEGORY", 8, raising=False)
    summary = audit_bank.audit_items(build_synthetic_bank())
    assert summary["warnings"] == []
    assert summary["coverage"]["signs"]["total"] == 28
    assert summary["totals"]["total"] == 64


def test_audit_flags_short_categories(tmp_path):
    bank = build_synthetic_bank(controls=5, signs=10, rules=28)

    summary = audit_bank.audit_items(bank)
    joined = "\n".join(summary["warnings"])
    assert "full: controls needs 8 items, bank has 5" in joined
    assert "full: signs needs 28 items, bank has 10" in joined
    assert "quick:" not in joined

    outfile = tmp_path / "bank_audit.json"
    text = audit_bank.write_summary(summary, path=outfile)
    assert outfile.read_text(encoding="utf-8").strip() == text


def test_audit_counts_scenarios_by_difficulty():
    bank = build_synthetic_bank(controls=0, signs=0, rules=0, scenarios_per_category=3)
    summary = audit_bank.audit_items(bank, session_types={})
    rules = summary["coverage"]["rules"]
    assert rules["scenario"] == 3 and rules["question"] == 0
    assert rules["difficulty"] == {"basic": 1, "intermediate": 1, "advanced": 1, "unrated": 0}


def test_main_returns_warning_exit(monkeypatch, capsys, tmp_path):
    bank = build_synthetic_bank(controls=2)
    monkeypatch.setattr(audit_bank, "load_bank", lambda: bank)
    out = tmp_path / "audit.json"
    monkeypatch.setattr(audit_bank, "write_summary", lambda s: out.write_text("{}", encoding="utf-8"))

    exit_code = audit_bank.main([])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "controls" in captured.out
    assert Path(out).exists()


def test_minimum_size_applies_to_exam_sections_only(monkeypatch):
    monkeypatch.setattr(config, "BANK_MIN_PER_CATEGORY", 8, raising=False)
    summary = audit_bank.audit_items(build_synthetic_bank(mixed=1, rules=7), session_types={})
    assert summary["warnings"] == ["rules has 7 items (<8)"]
