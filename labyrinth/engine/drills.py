"""Theseus Protocol drill library and selection."""

import random
from typing import Iterable, Mapping, Optional, Sequence

DEFAULT_DRILL_KEY = "default"

THESEUS_DRILLS: dict[str, list[str]] = {
    "time-mismanagement": [
        "⏱️ Theseus Drill: Solve 10 MCQs in strictly 7 minutes.",
        "⏱️ Theseus Drill: Write a Mains Answer Intro + Conclusion in 4 minutes.",
        "⏱️ Theseus Drill: Simulate the last 10 minutes of an exam (rush mode) with 5 questions.",
    ],
    "conceptual-error": [
        "🧠 Theseus Drill: Feynman Technique - Explain the confused concept to a 5-year-old (out loud).",
        "🧠 Theseus Drill: Draw a concept map linking the weak topic to 3 other syllabus areas.",
        "🧠 Theseus Drill: Review the standard text for the specific concept.",
    ],
    "silly-mistake": [
        "🧐 Theseus Drill: 'Sniper Mode' - Solve 5 MCQs, reading every option twice before marking.",
        "🧐 Theseus Drill: Audit last mock test specifically for reading errors (not knowledge gaps).",
        "🧐 Theseus Drill: Practice 'keyword circling' on 5 Mains questions.",
    ],
    "source-deficit": [
        "📚 Theseus Drill: Find and tag one primary source for this topic.",
        "📚 Theseus Drill: Cross-reference your notes against a topper's copy for this specific topic.",
        "📚 Theseus Drill: Value of Information (VOI) Check - Is this source yielding marks?",
    ],
    "overthinking": [
        "⚡ Theseus Drill: 'Gut Instinct' Run - Solve 10 MCQs trusting your first read immediately.",
        "⚡ Theseus Drill: Rapid Fire - Answer 5 questions with only 10 seconds of thought each.",
    ],
    "procrastination": [
        "🧱 Theseus Drill: The 5-Minute Entry - Do just the first 5 minutes of the feared task.",
        "🧱 Theseus Drill: Break the blocked task into 3 microscopic sub-tasks.",
    ],
    DEFAULT_DRILL_KEY: [
        "⚔️ Theseus Drill: Re-attempt the failed question/task immediately.",
        "⚔️ Theseus Drill: Write the Ariadne's Thread for this failure 3 times.",
    ],
}


def drills_for(archetype: str, library: Mapping[str, Sequence[str]] = THESEUS_DRILLS) -> list[str]:
    """Dedicated drills for ``archetype``, falling back to the default entry."""
    drills = library.get(archetype) or library.get(DEFAULT_DRILL_KEY) or []
    return list(drills)


def select_drills(
    archetype: str,
    existing_texts: Iterable[str] = (),
    k: int = 2,
    rng: Optional[random.Random] = None,
    library: Mapping[str, Sequence[str]] = THESEUS_DRILLS,
) -> list[str]:
    """Sample ``k`` drills without replacement, skipping ones already queued.

    Returns fewer than ``k`` drills when the sample hits duplicates; an
    already-queued drill is not replaced by another.
    """
    if not archetype:
        return []
    rng = rng or random.Random()
    drills = drills_for(archetype, library)
    sampled = rng.sample(drills, min(k, len(drills)))
    queued = set(existing_texts)
    return [d for d in sampled if d not in queued]
