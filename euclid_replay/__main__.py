import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from euclid_replay import (
    REFERENCE_BUILDERS,
    ReplayError,
    ReplayResult,
    ValidationError,
    compare_results,
    get_proposition,
    load_proposition,
    replay,
    validate_proposition,
)
from euclid_replay.model import Circle, Line, Segment

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _result_to_json(result: ReplayResult) -> Dict[str, Any]:
    state = result.state

    def label(ref: str) -> str:
        return state.get(ref).label  # type: ignore[union-attr]

    return {
        "points": [
            {"label": pt.label, "x": pt.x, "y": pt.y, "origin": pt.origin} for pt in state.points()
        ],
        "segments": [[label(seg.start), label(seg.end)] for seg in state.segments()],
        "circles": [{"center": label(c.center), "through": label(c.through)} for c in state.circles()],
        "lines": [[label(line.start), label(line.end)] for line in state.lines()],
        "facts": [
            {
                "id": fact.id,
                "statement": fact.statement,
                "citation": str(fact.citation),
                "justification": fact.justification,
                "step": fact.at_step,
            }
            for fact in result.facts
        ],
    }


def _print_result(result: ReplayResult) -> None:
    state = result.state
    print(f"Steps completed: {result.steps_completed}")
    print("Points:")
    for pt in state.points():
        print(f"  {pt.label}: ({pt.x:.6f}, {pt.y:.6f}) [{pt.origin}]")
    print("Entities:")
    for entity in state:
        if isinstance(entity, (Segment, Line)):
            print(f"  {entity.kind} {state.get(entity.start).label}{state.get(entity.end).label}")  # type: ignore[union-attr]
        elif isinstance(entity, Circle):
            center = state.get(entity.center).label  # type: ignore[union-attr]
            through = state.get(entity.through).label  # type: ignore[union-attr]
            print(f"  circle centre {center} through {through}")
    print("Facts:")
    if not len(result.facts):
        print("  (none)")
    for fact in result.facts:
        print(f"  [{fact.at_step}] {fact.statement}  ({fact.citation}) {fact.justification}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Replay a compass-and-straightedge construction")
    parser.add_argument(
        "target",
        help="Book I proposition number, or path to a proposition JSON file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final state and facts as JSON",
    )
    parser.add_argument(
        "--check-reference",
        action="store_true",
        help="Compare the replay with the hand-written builder (I.1-I.3 only)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    if args.target.isdigit():
        try:
            proposition = get_proposition(int(args.target))
        except KeyError as exc:
            logger.error("%s", exc.args[0])
            raise SystemExit(1)
    else:
        logger.info("Loading proposition from %s", args.target)
        proposition = load_proposition(Path(args.target))

    try:
        validate_proposition(proposition)
    except ValidationError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)
    logger.info("Validation succeeded")

    try:
        result = replay(proposition)
    except ReplayError as exc:
        logger.error("Replay of %s failed: %s", proposition.roman, exc)
        if exc.partial is not None:
            logger.info("State before failure: %s", exc.partial.state.summary())
        raise SystemExit(1)

    if args.json:
        print(json.dumps(_result_to_json(result), indent=2))
    else:
        print(f"{proposition.roman}: {proposition.title}")
        _print_result(result)

    if args.check_reference:
        builder = REFERENCE_BUILDERS.get(proposition.id)
        if builder is None:
            logger.warning("No reference builder for %s", proposition.roman)
            return
        problems = compare_results(result, builder())
        if problems:
            for problem in problems:
                logger.error("Reference mismatch: %s", problem)
            raise SystemExit(1)
        logger.info("Replay matches the reference builder")


if __name__ == "__main__":
    main(sys.argv[1:])
