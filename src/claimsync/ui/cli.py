from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimsync.app import (
    initialize,
    rescore,
    run_claims_ingest,
    run_updates_ingest,
    submit_manual_claim,
)
from claimsync.config import configure_logging
from claimsync.domain.claims import SubmissionRequest
from claimsync.domain.errors import InvalidSubmissionError
from claimsync.domain.model import RunStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from claimsync.domain.orchestrator import RunReport

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest capability updates and revenue claims")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("updates", help="Run the capability-update pipeline once")
    subparsers.add_parser("claims", help="Run the revenue-claim pipeline once")

    submit = subparsers.add_parser("submit", help="Submit a revenue claim manually")
    submit.add_argument("--subject", required=True, help="Product or founder name")
    submit.add_argument("--claim", required=True, help="Claim text, e.g. '$10k MRR'")
    submit.add_argument("--source-url", required=True, help="Where the claim was made")
    submit.add_argument("--subject-url", help="Product URL identifying the subject")
    submit.add_argument("--author", help="Author handle")
    submit.add_argument("--details", help="Free-text details (tools used, share built with AI)")
    submit.add_argument(
        "--tag",
        action="append",
        default=[],
        dest="tags",
        help="Tag to attach to the subject (repeatable)",
    )

    subparsers.add_parser("rescore", help="Recompute confidence for every stored claim")

    init = subparsers.add_parser("init", help="Create missing tables")
    init.add_argument(
        "--seed",
        action="store_true",
        help="Load sample capability updates when the store is empty",
    )

    serve = subparsers.add_parser("serve", help="Serve the HTTP trigger surface")
    serve.add_argument("--host", default=DEFAULT_HOST, help="Bind address (default: %(default)s)")
    serve.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help="Bind port (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _report_exit_code(report: RunReport) -> int:
    print(json.dumps(report.to_dict(), indent=2))  # noqa: T201
    if report.status is RunStatus.COMPLETED:
        return 0
    if report.status is RunStatus.LOCKED:
        log.info("Another %s run holds the lock; nothing to do", report.pipeline)
        return 0
    return 1


def _serve(host: str, port: int) -> None:
    import uvicorn  # noqa: PLC0415

    from claimsync.ui.http import create_app  # noqa: PLC0415

    uvicorn.run(create_app(), host=host, port=port)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    exit_code = 0
    try:
        if parsed_args.command == "updates":
            exit_code = _report_exit_code(run_updates_ingest())
        elif parsed_args.command == "claims":
            exit_code = _report_exit_code(run_claims_ingest())
        elif parsed_args.command == "submit":
            result = submit_manual_claim(
                SubmissionRequest(
                    subject_name=parsed_args.subject,
                    claim_text=parsed_args.claim,
                    source_url=parsed_args.source_url,
                    subject_url=parsed_args.subject_url,
                    author=parsed_args.author,
                    details_text=parsed_args.details,
                    tags=tuple(parsed_args.tags),
                )
            )
            log.info(
                "Stored claim %s: %s cents/month, %s confidence (%s)",
                result.claim_id,
                result.value,
                result.confidence_level,
                result.confidence_reason,
            )
        elif parsed_args.command == "rescore":
            report = rescore()
            log.info(
                "Rescore finished: rescored=%s, changed=%s, flagged=%s",
                report.rescored,
                report.changed,
                len(report.flagged),
            )
        elif parsed_args.command == "init":
            seeded = initialize(seed=parsed_args.seed)
            if seeded is not None:
                log.info("Seeded %s sample updates", seeded.totals.inserted)
            log.info("Storage initialised")
        elif parsed_args.command == "serve":
            _serve(parsed_args.host, parsed_args.port)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except InvalidSubmissionError as exc:
        log.error("Claim rejected: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


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
