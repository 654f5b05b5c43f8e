from __future__ import annotations
from html import escape
from typing import Dict, Any, List

from .types import Result


def _as_dict(result: Result | Dict[str, Any]) -> Dict[str, Any]:
    return result.to_dict() if isinstance(result, Result) else dict(result)


def _row(c: Dict[str, Any]) -> str:
    status = "Passed" if c.get("passed") else "Failed"
    css = "pass" if c.get("passed") else "fail"
    name = str(c.get("category", "")).capitalize()
    return (
        f"<tr class=\"{css}\"><td>{escape(name)}</td><td>{int(c.get('correct', 0))}/{int(c.get('total', 0))}</td>"
        f"<td>{int(c.get('required', 0))}</td><td>{status}</td></tr>"
    )


def render_result_html(result: Result | Dict[str, Any], title: str = "K53 Practice Result") -> str:
    data = _as_dict(result)
    cats: List[Dict[str, Any]] = list(data.get("categories") or [])
    rows = "\n".join(_row(c) for c in cats)
    meta = data.get("meta") or {}
    passed = bool(data.get("passed"))
    correct, total = int(data.get("correct", 0)), int(data.get("total", 0))
    percentage = round(correct / total * 100) if total else 0

    if passed:
        banner = "<div class=\"banner pass\">Congratulations! You've passed all required sections.</div>"
    else:
        failed = [str(c.get("category", "")).capitalize() for c in cats if not c.get("passed")]
        banner = (
            "<div class=\"banner fail\">Not yet. Keep practicing to improve your scores in: "
            f"{escape(', '.join(failed))}</div>"
        )

    session_line = ""
    if meta.get("session_type"):
        session_line = f"<p><b>Session:</b> {escape(str(meta['session_type']))}"
        if meta.get("duration_seconds") is not None:
            session_line += f" · {float(meta['duration_seconds']):.0f}s"
        session_line += "</p>"

    links = ""
    report_id = data.get("reportId") or meta.get("reportId")
    if report_id:
        rid = escape(str(report_id))
        links = (
            "<p class=\"export-links\">"
            f"<a href=\"/reports/{rid}/answers.json\">Answer sheet (JSON)</a> · "
            f"<a href=\"/reports/{rid}/answers.csv\">Answer sheet (CSV)</a>"
            "</p>"
        )

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>{escape(title)}</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .wrap{{max-width:960px;margin:40px auto;padding:0 16px}}
 h1{{margin:0 0 16px}}
 .overall{{font-size:1.1rem;margin:8px 0 16px}}
 .banner{{padding:12px 16px;border-radius:6px;margin:16px 0}}
 .banner.pass{{background:#e3f6e5;border:1px solid #2e9e44;color:#14501f}}
 .banner.fail{{background:#ffe7d9;border:1px solid #f5a623;color:#7a2d00}}
 table{{border-collapse:collapse;width:100%}}
 th,td{{text-align:left}}
 tr.fail td{{color:#a12a00}}
</style>
</head>
<body>
<div class="wrap">
  <h1>{escape(title)}</h1>
  <div class="overall"><b>Overall:</b> {correct}/{total} ({percentage}%) · {'PASS' if passed else 'FAIL'}</div>
  {banner}
  {session_line}
  <table border='1' cellpadding='6' cellspacing='0'>
    <thead><tr><th>Section</th><th>Score</th><th>Required</th><th>Status</th></tr></thead>
    <tbody>{rows}</tbody>
  </table>
  {links}
</div>
</body>
</html>"""


def export_report_html(result: Result | Dict[str, Any], path: str) -> str:
    html = render_result_html(result)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    return path
