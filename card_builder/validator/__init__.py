from card_builder.validator.preflight import (
    PreflightIssue,
    PreflightResult,
    ensure_exportable,
    run_preflight,
)

__all__ = ["PreflightIssue", "PreflightResult", "ensure_exportable", "run_preflight"]
