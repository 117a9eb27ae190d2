"""
CLI entry point: fills stats | recent | positions | pnl | large | stale | health.

Every report command loads config from --config (default ./config.yaml when
present), reads the fill log, builds the ledger report, prints it and records
the run in the journal.
"""

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any

import click
from dotenv import load_dotenv

from cli.structured_log import StructuredEventLogger
from config import AppConfig, Thresholds, ThresholdsError, load_thresholds, resolve_config
from data import FillLog, FillLogError
from ledger_core import LedgerReport, ParseResult, build_report, fold

load_dotenv()

logger = logging.getLogger("ledger")


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


@dataclass(frozen=True)
class _Run:
    cfg: AppConfig
    thresholds: Thresholds
    parsed: ParseResult
    report: LedgerReport
    events: StructuredEventLogger


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config file (default: ./config.yaml if present).")
@click.option("--log", "log_path", default=None, help="Fill log CSV. Overrides fill_log.path from config.")
@click.option("--thresholds", "thresholds_path", default=None, help="Thresholds JSON file.")
@click.option("--profile", default=None, help="Thresholds profile (e.g. conservative).")
@click.option("--large-usd", type=float, default=None, help="Override the large-position threshold in USD.")
@click.option("--stale-days", type=int, default=None, help="Override the stale-position age in days.")
@click.option("--exclude-failed", is_flag=True, default=False, help="Keep FAILED fills out of position math.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    log_path: str | None,
    thresholds_path: str | None,
    profile: str | None,
    large_usd: float | None,
    stale_days: int | None,
    exclude_failed: bool,
    verbose: bool,
) -> None:
    """fill-ledger: positions, P&L and data-quality checks from a trading agent's fill log."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj.update(
        config_path=config_path,
        log_path=log_path,
        thresholds_path=thresholds_path,
        profile=profile,
        large_usd=large_usd,
        stale_days=stale_days,
        exclude_failed=exclude_failed,
    )


def _threshold_overrides(opts: dict[str, Any]) -> dict[str, Any]:
    classifier: dict[str, Any] = {}
    if opts.get("large_usd") is not None:
        classifier["large_position_usd"] = opts["large_usd"]
    if opts.get("stale_days") is not None:
        classifier["stale_days"] = opts["stale_days"]
    return {"classifier": classifier} if classifier else {}


def _load_settings(ctx: click.Context) -> tuple[AppConfig, Thresholds]:
    opts = ctx.obj
    try:
        cfg = resolve_config(opts["config_path"])
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    try:
        thresholds = load_thresholds(
            opts["thresholds_path"] or cfg.thresholds.path or None,
            profile=opts["profile"] or cfg.thresholds.profile or None,
            overrides=_threshold_overrides(opts) or None,
        )
    except ThresholdsError as exc:
        raise click.ClickException(str(exc)) from exc
    return cfg, thresholds


def _run(ctx: click.Context, command: str, *, as_json: bool = False) -> _Run | None:
    """Load config and the fill log, build the report and journal it.

    Returns None (after telling the user) when there is no fill log yet.
    With *as_json* the journal never echoes to stdout, which carries only
    the JSON document.
    """
    cfg, thresholds = _load_settings(ctx)
    events = StructuredEventLogger(
        command,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    fill_log = FillLog(ctx.obj["log_path"] or cfg.fill_log.path)
    if not fill_log.exists():
        click.echo(f"No trading history found ({fill_log.path}).")
        return None

    try:
        parsed = fill_log.load()
    except FillLogError as exc:
        events.error("fill log unreadable", str(exc))
        raise click.ClickException(str(exc)) from exc

    for defect in parsed.defects:
        events.parse_defect(defect.line_number, defect.reason)

    snapshot = fold(
        parsed.records,
        defects=parsed.defects,
        exclude_failed=cfg.fill_log.exclude_failed or ctx.obj["exclude_failed"],
    )
    events.ledger_built(len(parsed.records), len(parsed.defects), len(snapshot))
    report = build_report(snapshot, thresholds)

    for w in report.reconciliation.warnings:
        events.data_quality_warning(w.code.value, w.message, w.count)

    if cfg.journal.enabled:
        from journal.writer import ReportJournal

        journal = ReportJournal(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout and not as_json)
        extra = {"account": cfg.account_label} if cfg.account_label else {}
        journal.record_run(report, source=str(fill_log.path), **extra)
        logger.debug("Run recorded in %s", journal.path)

    return _Run(cfg, thresholds, parsed, report, events)


def _finish(run: _Run, command: str) -> None:
    run.events.report_complete(
        command,
        open_positions=run.report.reconciliation.open_positions,
        warnings=len(run.report.reconciliation.warnings),
    )


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


# ---------- fills stats ----------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print counts as JSON.")
@click.pass_context
def stats(ctx: click.Context, as_json: bool) -> None:
    """Trade counts, execution rate and total volume."""
    run = _run(ctx, "stats", as_json=as_json)
    if run is None:
        return
    if as_json:
        payload = run.report.to_dict()["counts"]
        payload["total_volume"] = sum(r.usd_value for r in run.parsed.records)
        _echo_json(payload)
    else:
        from cli.output import format_stats

        click.echo(format_stats(run.parsed.records, run.report.reconciliation))
    _finish(run, "stats")


# ---------- fills recent ----------


@cli.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Number of trades to show.")
@click.pass_context
def recent(ctx: click.Context, limit: int) -> None:
    """Show the most recent trades, newest first."""
    run = _run(ctx, "recent")
    if run is None:
        return
    from cli.output import format_recent

    click.echo(format_recent(run.parsed.records, limit=limit))
    _finish(run, "recent")


# ---------- fills positions ----------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print open positions as JSON.")
@click.pass_context
def positions(ctx: click.Context, as_json: bool) -> None:
    """Open positions with cost basis, current value and unrealized P&L."""
    run = _run(ctx, "positions", as_json=as_json)
    if run is None:
        return
    if as_json:
        _echo_json([row.to_dict() for row in run.report.open_rows()])
    else:
        from cli.output import format_positions

        click.echo(format_positions(run.report))
    _finish(run, "positions")


# ---------- fills pnl ----------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the full report as JSON.")
@click.option("--strict", is_flag=True, default=False, help="Exit with code 1 when any data-quality warning fires.")
@click.pass_context
def pnl(ctx: click.Context, as_json: bool, strict: bool) -> None:
    """Reconcile realized and unrealized P&L and list data-quality warnings."""
    run = _run(ctx, "pnl", as_json=as_json)
    if run is None:
        return
    if as_json:
        _echo_json(run.report.to_dict())
    else:
        from cli.output import format_pnl

        click.echo(format_pnl(run.report.reconciliation))
    _finish(run, "pnl")
    if strict and run.report.reconciliation.has_warnings:
        raise SystemExit(1)


# ---------- fills large ----------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print large positions as JSON.")
@click.pass_context
def large(ctx: click.Context, as_json: bool) -> None:
    """Positions whose current value is at or above the large threshold."""
    run = _run(ctx, "large", as_json=as_json)
    if run is None:
        return
    if as_json:
        _echo_json([row.to_dict() for row in run.report.large_rows()])
    else:
        from cli.output import format_large

        click.echo(format_large(run.report, run.thresholds))
    _finish(run, "large")


# ---------- fills stale ----------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print stale positions as JSON.")
@click.pass_context
def stale(ctx: click.Context, as_json: bool) -> None:
    """Open positions whose last fill is older than the stale threshold."""
    run = _run(ctx, "stale", as_json=as_json)
    if run is None:
        return
    if as_json:
        _echo_json({
            "stale": [row.to_dict() for row in run.report.stale_rows()],
            "near_stale": [row.to_dict() for row in run.report.near_stale_rows()],
            "age_unknown": [row.instrument_id for row in run.report.age_unknown_rows()],
        })
    else:
        from cli.output import format_stale

        click.echo(format_stale(run.report, run.thresholds))
    _finish(run, "stale")


# ---------- fills health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check config, thresholds and fill log readability.

    Exit code 0 = healthy, 1 = unhealthy. Designed for Docker HEALTHCHECK.
    """
    checks: list[tuple[str, bool, str]] = []
    opts = ctx.obj

    try:
        cfg = resolve_config(opts["config_path"])
        checks.append(("config", True, f"loaded (fill log: {opts['log_path'] or cfg.fill_log.path})"))
    except (FileNotFoundError, ValueError) as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        thresholds = load_thresholds(
            opts["thresholds_path"] or cfg.thresholds.path or None,
            profile=opts["profile"] or cfg.thresholds.profile or None,
            overrides=_threshold_overrides(opts) or None,
        )
        checks.append((
            "thresholds",
            True,
            f"validated (large=${thresholds.large_position_usd:.2f}, stale={thresholds.stale_days}d)",
        ))
    except ThresholdsError as e:
        checks.append(("thresholds", False, str(e)))

    try:
        summary = FillLog(opts["log_path"] or cfg.fill_log.path).summary()
        if not summary.exists:
            checks.append(("fill_log", False, f"not found: {summary.path}"))
        elif summary.defects:
            checks.append((
                "fill_log",
                True,
                f"{summary.records} records, {summary.defects} unreadable row(s) ({summary.size_bytes} bytes)",
            ))
        else:
            checks.append(("fill_log", True, f"{summary.records} records ({summary.size_bytes} bytes)"))
    except FillLogError as e:
        checks.append(("fill_log", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
