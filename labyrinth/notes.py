"""Rendering of loss log records and link helpers."""

import re
from datetime import datetime
from typing import Optional

from labyrinth.schemas import FailureEvent

FUTURE_RISK_TAG = "#loss/future-risk"
FADED_INK_TAG = "#failure/faded-ink"
DEPENDENCY_BLOCKED_TAG = "#failure/dependency-blocked"
BLOCKED_MARKER = "#blocked"

_WIKILINK = re.compile(r"\[\[([^\]]+)\]\]")


def link_target(link: str) -> Optional[str]:
    """Return ``Name`` for a ``[[Name]]`` link (alias suffix dropped), else None."""
    match = _WIKILINK.search(link)
    if not match:
        return None
    return match.group(1).split("|", 1)[0].strip()


def topic_name(topic: str) -> str:
    """Bare topic name, whether or not it was written as a link."""
    return link_target(topic) or topic.strip()


def failure_tag(when: datetime) -> str:
    """Tag marking the day a failure happened, e.g. ``#failed-on-20261018``."""
    return f"#failed-on-{when.strftime('%Y%m%d')}"


def note_path(folder: str, when: datetime) -> str:
    """Record path for a new loss log, derived from its timestamp."""
    stamp = when.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-").replace("+", "_")
    return f"{folder.rstrip('/')}/{stamp}.md"


def render_body(event: FailureEvent, tag: str) -> str:
    """Human-readable body of a loss log record."""
    proactive = event.is_proactive
    parts = [tag, "", "## Log"]
    papers = ", ".join(event.papers) if event.papers else "study"
    outcome = "is anticipated to result in" if proactive else "resulted in"
    parts.append(f"During {papers}, {event.source_task} {outcome} a failure.")
    parts.append("")

    if event.realization_point:
        parts += ["## Failure Realization Point", event.realization_point, ""]

    if event.evidence_ref:
        parts += ["## Evidence", f"![[{event.evidence_ref}]]", ""]

    if event.linked_test_ref:
        verb = "might be" if proactive else "was"
        parts += ["## Linked Mock Test", f"This failure {verb} linked to {event.linked_test_ref}.", ""]

    root_cause = event.root_cause_chain[0] if event.root_cause_chain else "not yet traced"
    action = "mitigate" if proactive else "prevent"
    parts.append("## Reflection")
    parts.append(
        f"This failure was categorized as a {event.failure_type.value}. "
        f"The root cause seems to be: {root_cause}. "
        f"The Ariadne's Thread principle to {action} this in the future is: {event.principle}."
    )

    if len(event.root_cause_chain) > 1:
        parts += ["", "## Five Whys"]
        parts += [f"{i}. {cause}" for i, cause in enumerate(event.root_cause_chain, 1)]

    if event.counter_factual:
        helped = "helped avoid" if proactive else "prevented"
        parts += ["", "## Counter-Factual", f"A different action that could have {helped} this was: {event.counter_factual}."]

    return "\n".join(parts)


def codex_entry(thread: str, source_path: str, when: datetime) -> str:
    """A line appended to the codex when a thread is enshrined."""
    name = source_path.rsplit("/", 1)[-1].removesuffix(".md")
    return f"\n- **{thread}** (enshrined {when.date().isoformat()}, from [[{name}]])"
