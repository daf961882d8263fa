#!/usr/bin/env python3
"""
Run full moment demo: simulate -> analyze -> report.

Creates artifacts/moments/<test_id>/ab_summary.html plus CSV snapshots of the
simulated interactions and outcomes.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    test_id = "demo_banner_001"
    artifacts_dir = ROOT / "artifacts" / "moments"
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    from src.moment_analytics.engine import MomentAnalytics
    from src.moment_analytics.simulate_moments import FUNNEL_STEPS, run_moment_simulation
    from src.moment_analytics.report import render_ab_summary

    analytics = MomentAnalytics()
    analytics.setup_ab_test(test_id, "homepage-banner-a", "homepage-banner-b", traffic_split=0.5)

    print("1. Running moment simulation...")
    summary = run_moment_simulation(
        analytics,
        test_id,
        "homepage-banner-a",
        "homepage-banner-b",
        n_users=4000,
    )
    print(f"   Assigned: {summary['variant_a']['users']} A, {summary['variant_b']['users']} B")

    print("2. Running analysis...")
    result = analytics.analyze_ab_test(test_id)
    print(f"   Winner: {result.winner.value} (significance {result.significance:.3f})")

    funnel = analytics.analyze_funnel(
        "banner_funnel", FUNNEL_STEPS, datetime(2024, 1, 1), datetime(2024, 2, 1)
    )
    for step in funnel:
        print(f"   {step.step_name:<10} {step.converted_users:>5}/{step.total_users:<5} "
              f"{step.conversion_rate:6.2f}%")

    cohorts = analytics.get_cohort_analysis(datetime(2024, 1, 1), datetime(2024, 1, 14), "week")
    for c in cohorts:
        print(f"   cohort {c.cohort}: {c.total_users} users, "
              f"period1 {c.retention[1].percentage:.1f}%")

    print("3. Generating A/B summary...")
    render_ab_summary(result.to_dict(), test_id, artifacts_dir=str(artifacts_dir))
    analytics.export_events(str(artifacts_dir / test_id))

    out_dir = artifacts_dir / test_id
    print(f"\n[OK] Demo complete. Artifacts in {out_dir}:")
    for f in sorted(out_dir.iterdir()):
        print(f"   - {f.name}")


if __name__ == "__main__":
    main()
