"""HTML report generator — produces a self-contained HTML report for one comparison."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from pagediff.models.comparison import ComparisonReport, TextResourceDiff

logger = logging.getLogger(__name__)


def _embed_image(path: Path) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    try:
        if not path.exists() or path.stat().st_size == 0:
            return ""
        with open(path, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        suffix = path.suffix.lower()
        mime = "image/png" if suffix == ".png" else "image/jpeg" if suffix in (".jpg", ".jpeg") else "image/webp"
        return f"data:{mime};base64,{data}"
    except OSError:
        return ""


def _severity(percentage: float) -> str:
    if percentage == 0:
        return "pass"
    if percentage < 1:
        return "skip"
    return "fail"


def _render_patch(patch: str) -> str:
    """Colour unified diff lines by their prefix."""
    rows = []
    for line in patch.splitlines():
        if line.startswith(("+++", "---")):
            cls = "diff-file"
        elif line.startswith("@@"):
            cls = "diff-hunk"
        elif line.startswith("+"):
            cls = "diff-add"
        elif line.startswith("-"):
            cls = "diff-del"
        else:
            cls = ""
        rows.append(f'<span class="{cls}">{html.escape(line)}</span>')
    return "\n".join(rows)


def _build_diff_card(title: str, patch: str, kind: str) -> str:
    return f'''
    <div class="diff-card">
      <div class="diff-header" onclick="this.parentElement.classList.toggle('expanded')">
        <div class="diff-header-left">
          <span class="badge {kind}">{kind}</span>
          <strong>{html.escape(title)}</strong>
        </div>
        <span class="expand-arrow">&#9660;</span>
      </div>
      <div class="diff-body"><pre class="patch">{_render_patch(patch)}</pre></div>
    </div>'''


def _build_resource_section(label: str, kind: str, diffs: list[TextResourceDiff]) -> str:
    if not diffs:
        return f'<div class="section"><h4>{label}</h4><p class="empty">No changes</p></div>'
    cards = "".join(_build_diff_card(d.url, d.diff, kind) for d in diffs)
    return f'<div class="section"><h4>{label} ({len(diffs)} changed)</h4>{cards}</div>'


def _build_url_list(urls: list[str]) -> str:
    if not urls:
        return '<p class="empty">None</p>'
    items = "".join(f"<li><code>{html.escape(u)}</code></li>" for u in urls)
    return f"<ul>{items}</ul>"


def generate_html_report(
    report: ComparisonReport,
    artifacts_dir: Path,
    output_path: Path,
    html_diff: str = "",
) -> None:
    """Generate a self-contained HTML report with embedded screenshots and diffs."""
    severity = _severity(report.mismatch_percentage)
    images = report.resources.images

    shots = []
    for label, url in (
        ("Original", report.original_image_url),
        ("Upgraded", report.upgraded_image_url),
        ("Difference", report.diff_image_url),
    ):
        src = _embed_image(artifacts_dir / Path(url).name) or html.escape(url)
        shots.append(
            f'<div class="screenshot-item"><img src="{src}" alt="{label}" '
            f'onclick="this.classList.toggle(\'zoomed\')"><div class="screenshot-label">{label}</div></div>'
        )

    html_section = ""
    if html_diff:
        html_section = f'<div class="section"><h4>HTML</h4>{_build_diff_card("Document markup", html_diff, "html")}</div>'

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Page Comparison &mdash; {html.escape(report.comparison_id)}</title>
<style>
  :root {{ --pass: #22c55e; --fail: #ef4444; --skip: #eab308; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; --accent: #6366f1; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1400px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.pass .value {{ color: var(--pass); }}
  .stat.fail .value {{ color: var(--fail); }}
  .stat.skip .value {{ color: var(--skip); }}
  .badge {{ display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; text-transform: uppercase; white-space: nowrap; }}
  .badge.css {{ background: #dbeafe; color: #1e40af; }}
  .badge.javascript {{ background: #fef9c3; color: #854d0e; }}
  .badge.html {{ background: #e0e7ff; color: #3730a3; }}
  .section {{ margin-bottom: 1.2rem; }}
  .section h4 {{ font-size: 0.85rem; color: var(--muted); text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 0.4rem; padding-bottom: 0.25rem; border-bottom: 1px solid var(--border); }}
  .empty {{ color: var(--muted); font-size: 0.85rem; }}
  .columns {{ display: grid; grid-template-columns: 1fr 1fr; gap: 1rem; }}
  .columns ul {{ margin-left: 1.2rem; font-size: 0.85rem; }}
  .diff-card {{ background: var(--card); border-radius: 8px; margin-bottom: 0.6rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); overflow: hidden; }}
  .diff-header {{ display: flex; justify-content: space-between; align-items: center; padding: 0.7rem 1rem; cursor: pointer; user-select: none; }}
  .diff-header:hover {{ background: #f8fafc; }}
  .diff-header-left {{ display: flex; align-items: center; gap: 0.5rem; flex-wrap: wrap; word-break: break-all; }}
  .expand-arrow {{ color: var(--muted); font-size: 0.7rem; transition: transform 0.2s; }}
  .diff-card.expanded .expand-arrow {{ transform: rotate(180deg); }}
  .diff-body {{ display: none; padding: 0 1rem 1rem 1rem; }}
  .diff-card.expanded .diff-body {{ display: block; }}
  .patch {{ background: #1e293b; color: #f1f5f9; padding: 0.8rem; border-radius: 6px; font-size: 0.78rem; overflow: auto; max-height: 480px; }}
  .patch .diff-add {{ color: #86efac; }}
  .patch .diff-del {{ color: #fca5a5; }}
  .patch .diff-hunk {{ color: #a5b4fc; }}
  .patch .diff-file {{ color: #94a3b8; }}
  .screenshots-grid {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 0.6rem; margin-bottom: 1.5rem; }}
  .screenshot-item {{ text-align: center; }}
  .screenshot-item img {{ width: 100%; border-radius: 6px; border: 1px solid var(--border); cursor: pointer; }}
  .screenshot-item img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; border-radius: 8px; padding: 1rem; }}
  .screenshot-label {{ font-size: 0.75rem; color: var(--muted); margin-top: 0.2rem; }}
</style>
</head>
<body>
<div class="container">
  <h1>Page Comparison Report</h1>
  <p class="meta">Comparison: {html.escape(report.comparison_id)} &middot; {html.escape(report.created_at)} &middot; Duration: {report.duration_seconds}s<br>
  Original: <code>{html.escape(report.original_url)}</code> &middot; Upgraded: <code>{html.escape(report.upgraded_url)}</code></p>

  <div class="summary">
    <div class="stat {severity}"><div class="value">{report.mismatch_percentage:.2f}%</div><div class="label">Pixel Mismatch</div></div>
    <div class="stat"><div class="value">{report.mismatched_pixels}</div><div class="label">Mismatched Pixels</div></div>
    <div class="stat"><div class="value">{report.width}&times;{report.height}</div><div class="label">Canvas</div></div>
    <div class="stat"><div class="value">{len(report.resources.css)}</div><div class="label">CSS Changed</div></div>
    <div class="stat"><div class="value">{len(report.resources.javascript)}</div><div class="label">JS Changed</div></div>
    <div class="stat"><div class="value">{len(images.added)} / {len(images.removed)}</div><div class="label">Images Added / Removed</div></div>
  </div>

  <div class="screenshots-grid">
    {"".join(shots)}
  </div>

  {_build_resource_section("Stylesheets", "css", report.resources.css)}
  {_build_resource_section("Scripts", "javascript", report.resources.javascript)}

  <div class="section"><h4>Images</h4>
    <div class="columns">
      <div><strong>Added</strong>{_build_url_list(images.added)}</div>
      <div><strong>Removed</strong>{_build_url_list(images.removed)}</div>
    </div>
  </div>

  {html_section}
</div>
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
    logger.debug("HTML report written to %s", output_path)
