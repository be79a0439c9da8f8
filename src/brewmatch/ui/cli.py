# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from brewmatch.adapters.vision import AnalysisResponse, translate_analysis
from brewmatch.app import (
    build_workflow,
    ensure_started,
    import_catalog,
    resolve_entities,
    submit_entities,
    submit_photo,
)
from brewmatch.common.logging import configure_logging
from brewmatch.config.env import env_str
from brewmatch.domain.disambiguation import DisambiguationError, RejectedCreateNew
from brewmatch.domain.matching import DisambiguateMulti, NoMatch
from brewmatch.domain.model import ResolutionStatus, UserResolutionKind

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from brewmatch.domain.disambiguation import ConfirmationWorkflow, EntityView
    from brewmatch.domain.matching import ResolutionDecision
    from brewmatch.domain.model import ExtractedEntity

log = logging.getLogger(__name__)

type Prompt = Callable[[str], str]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Match beer labels against the catalog")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        help="Root log level name (default: $BREWMATCH_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the catalog tables")

    seed = subparsers.add_parser("import-catalog", help="Import breweries and beers from JSON")
    seed.add_argument("path", type=Path, help='JSON file with "breweries" and "beers" lists')

    match = subparsers.add_parser(
        "match",
        help="Classify a saved label analysis without opening a session",
    )
    match.add_argument("path", type=Path, help="Label analysis JSON (service response format)")

    review = subparsers.add_parser("review", help="Resolve a submission interactively")
    source = review.add_mutually_exclusive_group(required=True)
    source.add_argument("--analysis", type=Path, help="Label analysis JSON to review")
    source.add_argument("--photo", type=Path, help="Bottle photo to send to the analysis service")
    review.add_argument(
        "--save-verified",
        action="store_true",
        help="Save resolved entities even if some remain unanswered",
    )

    return parser.parse_args(list(argv))


def _load_json(path: Path) -> dict[str, object]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read JSON from {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return payload


def _load_entities(path: Path) -> tuple[ExtractedEntity, ...]:
    result = translate_analysis(AnalysisResponse.model_validate(_load_json(path)))
    if not result.entities:
        raise ValueError(f"No readable bottles in {path}")
    return result.entities


def _describe_decision(entity: ExtractedEntity, decision: ResolutionDecision) -> str:
    head = f"#{entity.bottle_index} {entity.kind} {entity.raw_label!r}: {decision.status}"
    if isinstance(decision, NoMatch):
        return f"{head} ({decision.reason})"
    if isinstance(decision, DisambiguateMulti):
        names = ", ".join(
            f"{candidate.name} ({candidate.name_similarity:.2f})"
            for candidate in decision.candidates
        )
        return f"{head} [{decision.reason}] {names}"
    return f"{head} -> {decision.record.name} ({decision.confidence:.2f})"


def _print_match(path: Path) -> None:
    for entity, decision in resolve_entities(_load_entities(path)):
        print(_describe_decision(entity, decision))


def _ask_entity(
    workflow: ConfirmationWorkflow,
    session_id: str,
    entity: EntityView,
    prompt: Prompt,
) -> None:
    print(f"\nBottle #{entity.bottle_index} {entity.kind}: {entity.raw_label!r} ({entity.status})")
    for number, candidate in enumerate(entity.candidates, start=1):
        extras = ", ".join(
            value
            for value in (candidate.website, candidate.address, candidate.beer_type)
            if value
        )
        print(f"  [{number}] {candidate.name} ({candidate.similarity:.2f}) {extras}".rstrip())
    answer = prompt("Pick a number, n = create new, m = enter manually, s = skip: ").strip().lower()

    if answer.isdigit() and 1 <= int(answer) <= len(entity.candidates):
        workflow.choose_candidate(
            session_id,
            entity.bottle_index,
            entity.candidates[int(answer) - 1].record_id,
            kind=entity.kind,
        )
    elif answer == "n":
        workflow.record_user_choice(
            session_id, entity.bottle_index, RejectedCreateNew(), kind=entity.kind
        )
    elif answer == "m":
        name = prompt("Name: ")
        extra_key = "website" if entity.kind == "brewery" else "beer_type"
        extra = prompt(f"{extra_key.replace('_', ' ').capitalize()} (optional): ")
        workflow.complete_manually(
            session_id,
            entity.bottle_index,
            {"name": name, extra_key: extra},
            kind=entity.kind,
        )


def review_session(
    workflow: ConfirmationWorkflow,
    session_id: str,
    *,
    prompt: Prompt = input,
    save_verified: bool = False,
) -> None:
    """Walk a session entity by entity and persist the answers."""

    view = workflow.describe(session_id)
    for entity in view.entities:
        if entity.resolution is not UserResolutionKind.PENDING:
            if entity.status is ResolutionStatus.AUTO_MATCH:
                print(f"#{entity.bottle_index} {entity.kind} {entity.raw_label!r}: auto-matched")
            continue
        while True:
            try:
                _ask_entity(workflow, session_id, entity, prompt)
            except DisambiguationError as exc:
                print(f"  {exc}")
                continue
            break

    progress = workflow.describe(session_id).progress
    if progress.outstanding == 0:
        persisted = workflow.commit(session_id)
        print(f"Committed {len(persisted)} entities")
    elif save_verified:
        outstanding = workflow.save_verified_only(session_id)
        print(f"Saved verified entities; {len(outstanding)} still need an answer")
    else:
        workflow.abandon(session_id)
        print(f"{progress.outstanding} entities unanswered; nothing saved")


def _run_review(args: argparse.Namespace) -> None:
    workflow = build_workflow()
    if args.photo is not None:
        mime_type = mimetypes.guess_type(args.photo.name)[0] or "image/jpeg"
        session = submit_photo(args.photo.read_bytes(), mime_type, workflow)
        if session is None:
            print("No bottles could be read from the photo")
            return
    else:
        session = submit_entities(_load_entities(args.analysis), workflow)
    review_session(workflow, session.session_id, save_verified=args.save_verified)


def _log_level(args: argparse.Namespace) -> int | str:
    if args.verbose:
        return logging.DEBUG
    return args.log_level or env_str("BREWMATCH_LOG_LEVEL") or logging.INFO


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    try:
        configure_logging(level=_log_level(parsed_args))
        if parsed_args.command == "init-db":
            ensure_started()
            log.info("Catalog tables ready")
        elif parsed_args.command == "import-catalog":
            result = import_catalog(_load_json(parsed_args.path))
            log.info("Imported %d breweries, %d beers", result.breweries, result.beers)
        elif parsed_args.command == "match":
            _print_match(parsed_args.path)
        elif parsed_args.command == "review":
            _run_review(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
