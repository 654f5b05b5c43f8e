from __future__ import annotations

import json

import pytest

from app_cli import run_practice
from k53_core.errors import QuotaShortfallWarning


def test_cli_quick_run_writes_html(tmp_path, capsys):
    prompts: list[str] = []

    def read(prompt: str) -> str:
        prompts.append(prompt)
        return "0"

    out = tmp_path / "reports" / "quick.html"
    code = run_practice.main(["--type", "quick", "--seed", "42", "--html", str(out)], read=read)
    text = capsys.readouterr().out

    assert code in (0, 1)
    assert len(prompts) == 12
    assert "Question 12 of 12" in text
    assert "=== Result ===" in text
    assert out.exists()
    assert "<table" in out.read_text(encoding="utf-8")


def test_cli_reprompts_on_bad_input(capsys):
    answers = iter(["x", "17", "1"] + ["0"] * 20)
    code = run_practice.main(["--type", "scenario", "--count", "2", "--seed", "1"], read=lambda _p: next(answers))
    text = capsys.readouterr().out
    assert code in (0, 1)
    assert text.count("Enter a number between") == 2


def test_cli_reports_unbuildable_test(capsys):
    code = run_practice.main(["--type", "scenario", "--count", "999", "--policy", "strict"])
    assert code == 2
    assert "Cannot build test" in capsys.readouterr().err


def test_cli_reads_policy_and_bank_from_config_file(tmp_path, monkeypatch, capsys):
    for name in ("QUOTA_POLICY", "K53_BANK_PATH", "SEED"):
        monkeypatch.delenv(name, raising=False)
    bank = tmp_path / "bank.json"
    bank.write_text(json.dumps([
        {"id": f"S{i}", "category": "rules", "kind": "scenario", "prompt": f"Scenario {i}",
         "options": ["Stop", "Go"], "correct_index": 0, "explanation": ""}
        for i in range(2)
    ]), encoding="utf-8")
    (tmp_path / "config.json").write_text(
        json.dumps({"QUOTA_POLICY": "cap", "BANK_PATH": str(bank)}), encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    with pytest.warns(QuotaShortfallWarning):
        code = run_practice.main(["--type", "scenario", "--count", "5", "--seed", "3"], read=lambda _p: "0")
    assert code == 0
    assert "Question 2 of 2" in capsys.readouterr().out
