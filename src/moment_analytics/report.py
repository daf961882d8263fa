"""
A/B test summary report.

Renders an ABTestResult (as produced by to_dict) into a standalone HTML page
under artifacts/moments/<test_id>/ab_summary.html.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACTS_DIR = "artifacts/moments"

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>A/B test {{ r.test_id }}</title>
  <style>
    body { font-family: sans-serif; margin: 32px; color: #222; }
    table { border-collapse: collapse; }
    th, td { border: 1px solid #ccc; padding: 6px 12px; text-align: right; }
    th:first-child, td:first-child { text-align: left; }
    .winner { font-size: 1.3em; font-weight: bold; }
    .warning { background: #fdebd0; padding: 8px; border-radius: 4px; }
  </style>
</head>
<body>
  <h1>A/B test {{ r.test_id }}</h1>
  <p class="winner">Winner: {{ r.winner }}</p>
  <p>Significance {{ "%.3f"|format(r.significance) }}
     (threshold {{ "%.2f"|format(threshold) }}),
     p-value {{ "%.4f"|format(r.p_value) if r.p_value is not none else "n/a" }},
     confidence level {{ r.confidence_level }}%</p>
  {% if not r.srm_passed %}
  <p class="warning">Sample ratio mismatch against traffic split {{ r.traffic_split }}.
     Check traffic allocation before acting on this result.</p>
  {% endif %}
  {% if r.peek_warning %}<p class="warning">{{ r.peek_warning }}</p>{% endif %}
  <table>
    <tr><th>Variant</th><th>Moment</th><th>Sample size</th><th>Views</th><th>Clicks</th>
        <th>Conversions</th><th>CTR %</th><th>Conversion %</th><th>Revenue</th></tr>
    {% for label, v in [("A", r.variant_a), ("B", r.variant_b)] %}
    <tr>
      <td>{{ label }}</td><td>{{ v.moment_id }}</td><td>{{ v.sample_size }}</td>
      <td>{{ v.stats.total_views }}</td><td>{{ v.stats.total_clicks }}</td>
      <td>{{ v.stats.total_conversions }}</td>
      <td>{{ "%.2f"|format(v.stats.click_through_rate) }}</td>
      <td>{{ "%.2f"|format(v.stats.conversion_rate) }}</td>
      <td>{{ "%.2f"|format(v.stats.revenue_attribution) }}</td>
    </tr>
    {% endfor %}
  </table>
  <p>Analysis #{{ r.analysis_count }} (version {{ r.version }}) at {{ r.analyzed_at or "n/a" }}</p>
</body>
</html>
"""

_env = Environment(autoescape=select_autoescape(default=True))


def render_ab_summary(
    result: Dict[str, Any],
    test_id: str,
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR,
    threshold: float = 0.95,
) -> Path:
    """
    Render the HTML summary for an analyzed A/B test.

    Args:
        result: ABTestResult.to_dict()
        test_id: Test identifier (output subdirectory)
        artifacts_dir: Base artifacts directory
        threshold: Significance threshold shown next to the score

    Returns:
        Path of the written HTML file
    """
    out_dir = Path(artifacts_dir) / test_id
    out_dir.mkdir(parents=True, exist_ok=True)
    html = _env.from_string(_TEMPLATE).render(r=result, threshold=threshold)
    out_path = out_dir / "ab_summary.html"
    out_path.write_text(html, encoding="utf-8")
    logger.info(f"A/B summary written to {out_path}")
    return out_path
