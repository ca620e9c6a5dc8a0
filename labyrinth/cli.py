"""Click-based CLI over a Markdown vault and a JSON state file."""

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import click

from labyrinth.config import LabyrinthConfig
from labyrinth.engine.service import LabyrinthEngine
from labyrinth.engine.signals import LabyrinthListener, LogOutcome
from labyrinth.errors import LabyrinthError
from labyrinth.schemas import FailureType, LabyrinthState, Origin
from labyrinth.store.markdown import MarkdownRecordStore

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = ".labyrinth/state.json"


class EchoListener(LabyrinthListener):
    """Prints engine notices to the terminal."""

    async def on_notice(self, message: str) -> None:
        click.echo(message)


@dataclass
class Session:
    vault: Path
    state_path: Path
    config: LabyrinthConfig


def load_state(path: Path) -> LabyrinthState:
    """Read the state file; a missing file gives a fresh state."""
    if not path.exists():
        logger.debug(f"No state file at {path}, starting fresh")
        return LabyrinthState()
    try:
        return LabyrinthState.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read state file {path}: {e}")


def make_saver(path: Path):
    async def save(state: LabyrinthState) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(state.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    return save


def build_engine(session: Session) -> LabyrinthEngine:
    return LabyrinthEngine(
        store=MarkdownRecordStore(session.vault),
        state=load_state(session.state_path),
        config=session.config,
        save=make_saver(session.state_path),
        listener=EchoListener(),
    )


def run(session: Session, action) -> Any:
    """Run ``action(engine)`` to completion, mapping domain errors to CLI errors."""
    engine = build_engine(session)
    try:
        return asyncio.run(action(engine))
    except LabyrinthError as e:
        logger.debug(f"Command failed: {e!r}")
        raise click.ClickException(str(e))


def _event_fields(
    task: Optional[str],
    archetypes: tuple[str, ...],
    thread: Optional[str],
    failure_type: Optional[str],
    impact: Optional[int],
    topics: tuple[str, ...],
    papers: tuple[str, ...],
    aura: Optional[str],
    emotion: Optional[str],
    whys: tuple[str, ...],
    counter_factual: Optional[str],
    evidence: Optional[str],
    mock_test: Optional[str],
    realization: Optional[str],
) -> dict[str, Any]:
    fields = {
        "source_task": task,
        "archetypes": list(archetypes) or None,
        "principle": thread,
        "failure_type": failure_type,
        "impact": impact,
        "topics": list(topics) or None,
        "papers": list(papers) or None,
        "aura": aura,
        "emotional_state": emotion,
        "root_cause_chain": list(whys) or None,
        "counter_factual": counter_factual,
        "evidence_ref": evidence,
        "linked_test_ref": mock_test,
        "realization_point": realization,
    }
    return {k: v for k, v in fields.items() if v is not None}


def event_options(func):
    """Options shared by ``log`` and ``complete``."""
    options = [
        click.option("--task", "-t", help="The task or question that failed"),
        click.option("--archetype", "-a", "archetypes", multiple=True, help="Failure archetype (repeatable)"),
        click.option("--thread", help="Ariadne's Thread: the principle learned"),
        click.option(
            "--type",
            "failure_type",
            type=click.Choice([t.value for t in FailureType], case_sensitive=False),
            help="Failure type",
        ),
        click.option("--impact", type=click.IntRange(1, 5), help="Impact from 1 to 5"),
        click.option("--topic", "topics", multiple=True, help="Syllabus topic (repeatable)"),
        click.option("--paper", "papers", multiple=True, help="Syllabus paper (repeatable)"),
        click.option("--aura", help="Aura tag, e.g. #aura-low"),
        click.option("--emotion", help="Emotional state at the time"),
        click.option("--why", "whys", multiple=True, help="Root cause, one per Why (up to 5)"),
        click.option("--counter-factual", help="What would have prevented it"),
        click.option("--evidence", help="Evidence attachment or link"),
        click.option("--mock-test", help="Linked mock test"),
        click.option("--realization", help="When the failure was realized"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def echo_outcome(outcome: LogOutcome) -> None:
    click.echo(f"Logged {outcome.event.id} -> {outcome.path}")
    if outcome.minotaur_change is not None:
        change = outcome.minotaur_change
        click.echo(f"Minotaur: {change.previous or '(none)'} -> {change.current or '(none)'}")


@click.group()
@click.option(
    "--vault",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    envvar="LABYRINTH_VAULT",
    show_default=True,
    help="Root directory of the Markdown vault",
)
@click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"State file (default: <vault>/{DEFAULT_STATE_FILE})",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with engine options",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    vault: Path,
    state_path: Optional[Path],
    config_path: Optional[Path],
    verbose: bool,
) -> None:
    """Labyrinth of Loss: log failures, hunt the Minotaur."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = LabyrinthConfig()
    if config_path is not None:
        try:
            config = LabyrinthConfig.from_dict(json.loads(config_path.read_text(encoding="utf-8")))
        except (OSError, ValueError, TypeError) as e:
            raise click.ClickException(f"Invalid config {config_path}: {e}")

    ctx.obj = Session(vault=vault, state_path=state_path or vault / DEFAULT_STATE_FILE, config=config)
    logger.debug(f"Vault: {vault}, state: {ctx.obj.state_path}")


@cli.command()
@event_options
@click.option("--proactive", is_flag=True, help="Log an anticipated risk instead of a failure")
@click.option("--task-id", help="Identifier of the originating task")
@click.pass_obj
def log(session: Session, proactive: bool, task_id: Optional[str], **kwargs) -> None:
    """Log a completed failure (or risk) and run remediation."""
    fields = _event_fields(**kwargs)
    fields["provenance"] = {
        "origin": Origin.PROACTIVE if proactive else Origin.MANUAL,
        "source_task_id": task_id,
    }
    outcome = run(session, lambda engine: engine.log_failure(fields))
    echo_outcome(outcome)


@cli.command()
@click.option("--task", "-t", required=True, help="The task or question that failed")
@click.option(
    "--type",
    "failure_type",
    type=click.Choice([t.value for t in FailureType], case_sensitive=False),
    help="Initial failure type",
)
@click.option("--archetype", "-a", "archetypes", multiple=True, help="Initial archetype (repeatable)")
@click.option("--aura", help="Initial aura tag")
@click.option("--topic", "topics", multiple=True, help="Initial topic (repeatable)")
@click.option("--task-id", help="Identifier of the originating task")
@click.option("--realization", help="When the failure was realized")
@click.option("--proactive", is_flag=True, help="Defer an anticipated risk")
@click.pass_obj
def defer(
    session: Session,
    task: str,
    failure_type: Optional[str],
    archetypes: tuple[str, ...],
    aura: Optional[str],
    topics: tuple[str, ...],
    task_id: Optional[str],
    realization: Optional[str],
    proactive: bool,
) -> None:
    """Capture a failure now and reflect on it later."""
    partial = {
        "source_task": task,
        "initial_failure_type": failure_type,
        "initial_archetypes": list(archetypes),
        "initial_aura": aura,
        "initial_topics": list(topics),
        "original_task_id": task_id,
        "realization_point": realization,
        "is_proactive": proactive,
    }
    pending = run(session, lambda engine: engine.defer_loss_log(partial))
    click.echo(f"Deferred as {pending.pending_id}")


@cli.command()
@click.pass_obj
def pending(session: Session) -> None:
    """List deferred failures awaiting reflection."""
    items = build_engine(session).get_pending_logs()
    if not items:
        click.echo("No pending loss logs.")
        return
    for item in items:
        hints = ", ".join(item.initial_archetypes) or "-"
        click.echo(f"{item.pending_id}  {item.timestamp:%Y-%m-%d}  {item.source_task}  [{hints}]")


@cli.command()
@click.argument("pending_id")
@event_options
@click.pass_obj
def complete(session: Session, pending_id: str, **kwargs) -> None:
    """Complete a deferred failure into a full loss log."""
    fields = _event_fields(**kwargs)
    outcome = run(session, lambda engine: engine.complete_pending_log(pending_id, fields))
    echo_outcome(outcome)


@cli.command()
@click.argument("pending_id")
@click.pass_obj
def discard(session: Session, pending_id: str) -> None:
    """Drop a deferred failure without logging it."""
    removed = run(session, lambda engine: engine.discard_pending_log(pending_id))
    if removed is None:
        raise click.ClickException(f"No pending loss log with id {pending_id}")
    click.echo(f"Discarded {removed.source_task!r}")


@cli.command("task-deferred")
@click.argument("task_id")
@click.pass_obj
def task_deferred(session: Session, task_id: str) -> None:
    """Record that an external task was postponed again."""
    prompt = run(session, lambda engine: engine.record_task_deferral(task_id))
    if prompt:
        click.echo(f"Task {task_id} keeps slipping. Consider logging a loss.")


@cli.command()
@click.pass_obj
def recalc(session: Session) -> None:
    """Recompute the dominant archetype from stored logs."""

    async def action(engine: LabyrinthEngine):
        await engine.recalculate_minotaur()
        return engine.current_minotaur

    current = run(session, action)
    click.echo(f"Current Minotaur: {current or '(none)'}")


@cli.command()
@click.pass_obj
def status(session: Session) -> None:
    """Show XP, level, Minotaur, streak and bounty."""
    engine = build_engine(session)
    level = engine.level
    click.echo(f"Level {level.level} {level.title} ({engine.xp} XP)")
    click.echo(f"Lifetime losses logged: {engine.state.lifetime_events}")
    click.echo(f"Current Minotaur: {engine.current_minotaur or '(none)'}")
    click.echo(f"Slaying streak: {engine.streak_days} day(s)")
    bounty = engine.bounties.active
    if bounty is not None:
        click.echo(f"Bounty: {bounty.archetype} {bounty.count}/{bounty.target} (+{bounty.reward_xp} XP)")
    click.echo(f"Pending reflections: {len(engine.queue)}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_obj
def trends(session: Session, as_json: bool) -> None:
    """Show how the Minotaur has changed over time."""
    report = build_engine(session).trends()
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return
    if not report.total_changes:
        click.echo("No Minotaur history yet.")
        return
    click.echo(f"Most frequent: {report.most_frequent} ({report.most_frequent_count}x)")
    click.echo(f"Most persistent: {report.most_persistent} ({report.longest_run} in a row)")
    click.echo(f"Distinct in last {report.recent_period}: {report.recent_instability}")
    for line in report.timeline:
        click.echo(f"  {line}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_obj
def analyze(session: Session, as_json: bool) -> None:
    """Run the analytics scans over every stored loss log."""
    report = run(session, lambda engine: engine.analyze())
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return
    click.echo(f"Total loss logs: {report.total_logs}")
    click.echo("Top archetypes (weighted):")
    for archetype, score in report.weighted_leaderboard:
        click.echo(f"  {archetype}: {score:.2f}")
    if report.nemesis_topics:
        click.echo("Nemesis topics:")
        for topic, count in report.nemesis_topics.items():
            click.echo(f"  {topic}: {count}")
    rate = report.escape_rate
    click.echo(f"Escape rate: {rate.percentage:.1f}% ({rate.escaped}/{rate.failed})")
    for correlation in report.correlations:
        click.echo(f"Correlation: {correlation.description}: {correlation.details}")
    for insight in report.process_patterns:
        click.echo(f"Pattern: {insight}")


@cli.group()
def bounty() -> None:
    """Manage the active bounty."""


@bounty.command("start")
@click.argument("archetype")
@click.option("--target", type=int, help="Catches required")
@click.option("--reward", type=int, help="XP reward")
@click.pass_obj
def bounty_start(session: Session, archetype: str, target: Optional[int], reward: Optional[int]) -> None:
    """Post a bounty on ARCHETYPE."""
    posted = run(session, lambda engine: engine.start_bounty(archetype, target, reward))
    click.echo(f"Bounty posted: catch {posted.archetype} {posted.target} times for {posted.reward_xp} XP")


@bounty.command("abandon")
@click.pass_obj
def bounty_abandon(session: Session) -> None:
    """Abandon the active bounty."""
    dropped = run(session, lambda engine: engine.abandon_bounty())
    click.echo(f"Abandoned bounty on {dropped.archetype}" if dropped else "No active bounty.")


@cli.command("weekly-reset")
@click.pass_obj
def weekly_reset(session: Session) -> None:
    """Clear pending logs, deferral counts and Minotaur history."""
    run(session, lambda engine: engine.weekly_reset())
    click.echo("Weekly reset complete.")


@cli.command("resolve-risk")
@click.argument("path")
@click.option("--manifested/--avoided", default=False, help="Whether the risk came true")
@click.pass_obj
def resolve_risk(session: Session, path: str, manifested: bool) -> None:
    """Resolve a proactive risk record at PATH (vault-relative)."""
    run(session, lambda engine: engine.resolve_risk(path, manifested))
    click.echo("Risk marked as manifested." if manifested else "Risk marked as avoided.")


@cli.command()
@click.argument("path")
@click.pass_obj
def guardian(session: Session, path: str) -> None:
    """Create a guardian task from the thread of the record at PATH."""
    task = run(session, lambda engine: engine.create_guardian_task(path))
    click.echo(task.text)


@cli.command()
@click.argument("path")
@click.pass_obj
def enshrine(session: Session, path: str) -> None:
    """Enshrine the thread of the record at PATH in the codex."""
    if run(session, lambda engine: engine.enshrine_thread(path)):
        click.echo("Thread enshrined.")
    else:
        click.echo("Nothing to enshrine.")


@cli.command("archive-threads")
@click.pass_obj
def archive_threads(session: Session) -> None:
    """Archive old threads on topics that have since been mastered."""
    archived = run(session, lambda engine: engine.check_thread_obsolescence())
    click.echo(f"Archived {len(archived)} thread(s).")


@cli.command()
@click.pass_obj
def intent(session: Session) -> None:
    """Draw a past principle to carry through the day."""
    thread = run(session, lambda engine: engine.daily_intent())
    click.echo(f"Today's intent: {thread}" if thread else "No threads woven yet.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
