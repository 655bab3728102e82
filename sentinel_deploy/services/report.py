"""Render the end-of-run summary as text or JSON."""

import json

from sentinel_deploy.models.results import ActivationReport, InstallReport, RuleOutcome


def format_run_report(
    install: InstallReport | None,
    activation: ActivationReport | None,
    fmt: str = "text",
    rules_error: str | None = None,
) -> str:
    if fmt == "json":
        return json.dumps({
            "solutions": install.model_dump(mode="json") if install else None,
            "rules": activation.model_dump(mode="json") if activation else None,
            "rules_error": rules_error,
        }, indent=2)

    lines = [
        "",
        "=" * 60,
        "SENTINEL CONTENT DEPLOYMENT REPORT",
        "=" * 60,
    ]

    if install is not None:
        lines.append(
            f"  Solutions:  {len(install.requested)} requested, "
            f"{len(install.succeeded)} installed, {len(install.failed)} failed, "
            f"{len(install.missing)} not found"
        )
        lines.append("")
        lines.append(f"  {'Solution':<40} {'Status':<10} {'HTTP':<6} {'Time':<8}")
        lines.append(f"  {'-'*40} {'-'*10} {'-'*6} {'-'*8}")
        for r in install.results:
            code = str(r.status_code) if r.status_code is not None else "-"
            lines.append(f"  {r.solution[:40]:<40} {r.status.value:<10} {code:<6} {r.duration_seconds:.1f}s")
        for name in install.missing:
            lines.append(f"  {name[:40]:<40} {'missing':<10} {'-':<6} {'-':<8}")

    if rules_error is not None:
        lines.append("")
        lines.append(f"  Rules:      aborted: {rules_error}")

    if activation is not None:
        lines.append("")
        lines.append(
            f"  Rules:      {len(activation.results)} templates, {activation.deployed} deployed, "
            f"{activation.skipped} skipped, {activation.failed} failed"
        )
        for outcome in RuleOutcome:
            count = activation.count(outcome)
            if count:
                lines.append(f"    {outcome.value:<28} {count}")
        failures = [r for r in activation.results if r.outcome == RuleOutcome.FAILED]
        if failures:
            lines.append("")
            lines.append("  Failed rules:")
            for r in failures:
                lines.append(f"    {r.display_name[:56]}")

    lines.append("=" * 60)
    return "\n".join(lines)
