from __future__ import annotations

from ..models.pipeline_result import PipelineResult

"""SUMMARY line rendering.

Format:
    SUMMARY passes={ok}/{total} generated={g}/{rows} inserted={i}/{planned}
            rejected={r} failed_passes={f} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: PipelineResult) -> str:
    """Render the SUMMARY line for a pipeline run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from roster_qr.models.pipeline_result import PassResult
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> p = PassResult("Members", True, total_rows=3, generated=3, planned=3, inserted=2)
        >>> r = PipelineResult([p], True, None, t, t, 2.0)
        >>> render_summary_line(r)
        'SUMMARY passes=1/1 generated=3/3 inserted=2/3 rejected=0 failed_passes=0 elapsed_sec=2'
    """
    total_passes = len(result.passes) + len(result.skipped_passes)
    ok_passes = sum(1 for p in result.passes if p.success)
    failed_passes = sum(1 for p in result.passes if not p.success)
    rejected = sum(p.rejected_rows for p in result.passes)
    return (
        f"SUMMARY passes={ok_passes}/{total_passes} "
        f"generated={result.generated}/{result.total_rows} "
        f"inserted={result.inserted}/{result.planned} "
        f"rejected={rejected} "
        f"failed_passes={failed_passes} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
