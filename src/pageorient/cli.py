from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from pageorient._version import __version__
from pageorient.batch.state import DEFAULT_CONTINUOUS_THRESHOLD
from pageorient.config import RESUME_FILENAME, OrientationConfig

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def parse_page_selection(raw_selection: str, total_pages: int) -> list[int]:
    selected_pages: list[int] = []
    for part in raw_selection.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            first, last = (int(bound) for bound in part.split("-", 1))
            selected_pages.extend(range(first, last + 1))
        else:
            selected_pages.append(int(part))

    out_of_range = [page for page in selected_pages if page < 1 or page > total_pages]
    if out_of_range:
        raise ValueError(f"Pages out of range 1..{total_pages}: {out_of_range}")
    return selected_pages


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pageorient",
        description="Detect and correct scanned page orientation.",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"pageorient {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the orientation HTTP service.")
    serve_parser.add_argument("--host", default=DEFAULT_HOST, help="Bind address.")
    serve_parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Bind port.")

    detect_parser = subparsers.add_parser("detect", help="Detect the orientation of one image.")
    detect_parser.add_argument("image", type=str, help="PNG or JPEG page image.")

    batch_parser = subparsers.add_parser(
        "batch", help="Detect orientation for every page image in a directory."
    )
    batch_parser.add_argument(
        "input_dir",
        type=str,
        help="Directory containing page images (<name>_p<N>.png).",
    )
    batch_parser.add_argument(
        "--server",
        default=f"http://{DEFAULT_HOST}:{DEFAULT_PORT}",
        help="Base URL of the orientation service.",
    )
    batch_parser.add_argument(
        "--pages", "-p",
        default=None,
        help="Pages to process, e.g. '1,3,5-8'. Default: all pages.",
    )
    batch_parser.add_argument(
        "--continuous",
        action="store_true",
        default=False,
        help="Fill pages between two agreeing confident pages with their rotation.",
    )
    batch_parser.add_argument(
        "--threshold",
        type=float,
        default=DEFAULT_CONTINUOUS_THRESHOLD,
        help="Likelihood needed for a confident page. Default: %(default)s.",
    )
    batch_parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the resulting rotation map as JSON to this file.",
    )
    batch_parser.add_argument(
        "--resume-file",
        default=None,
        help=f"Snapshot file for cancelled runs. Default: <input_dir>/{RESUME_FILENAME}.",
    )
    batch_parser.add_argument(
        "--no-resume",
        action="store_true",
        default=False,
        help="Ignore any snapshot left by a cancelled run.",
    )
    batch_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Only show what would be done, without processing.",
    )
    return parser


def _run_serve(arguments: argparse.Namespace) -> int:
    import uvicorn

    from pageorient.detection.recognizer import is_tesseract_available
    from pageorient.server.app import create_app

    logging.basicConfig(level=logging.INFO)
    is_tesseract_available()
    uvicorn.run(create_app(), host=arguments.host, port=arguments.port)
    return 0


def _run_detect(arguments: argparse.Namespace) -> int:
    from pageorient.detection.engine import detect_orientation

    image_path = Path(arguments.image)
    if not image_path.is_file():
        print(f"Error: '{arguments.image}' is not a file.", file=sys.stderr)
        return 1

    result = detect_orientation(image_path.read_bytes(), config=OrientationConfig.from_env())
    print(json.dumps({
        "rotation": result.rotation,
        "confidence": round(result.confidence, 4),
        "textSample": result.text_sample,
    }))
    return 0


def _print_batch_header(input_path: Path, total_pages: int, target_count: int, arguments) -> None:
    print(f"\n{'=' * 60}")
    print(f"  pageorient v{__version__}")
    print(f"{'=' * 60}")
    print(f"  Input:            {input_path}")
    print(f"  Pages found:      {total_pages}")
    print(f"  Pages targeted:   {target_count}")
    print(f"  Server:           {arguments.server}")
    print(f"  Continuous:       {'enabled' if arguments.continuous else 'disabled'}")
    print(f"  Threshold:        {arguments.threshold}")
    print(f"{'=' * 60}\n")


def _print_outcome(outcome) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {outcome.status.value.upper()}")
    print(f"{'=' * 60}")
    print(f"  Processed:        {outcome.processed}")
    print(f"  Rotated:          {len(outcome.state.corrected_pages)}")
    print(f"  Errors:           {len(outcome.failures)}")
    if outcome.summary:
        print(f"  {outcome.summary}")
    if outcome.error:
        print(f"  Stopped:          {outcome.error}")
    print(f"{'=' * 60}\n")

    for failure in outcome.failures:
        print(f"  page {failure.page}: {failure.message}")


def _run_batch(arguments: argparse.Namespace) -> int:
    from pageorient.batch.cancellation import CancellationToken
    from pageorient.batch.client import OrientationClient, PageDetector
    from pageorient.batch.orchestrator import BatchOrientationOrchestrator
    from pageorient.batch.scanner import DirectoryPageSource
    from pageorient.batch.state import BatchRunState, BatchStatus

    input_path = Path(arguments.input_dir)
    if not input_path.is_dir():
        print(f"Error: '{arguments.input_dir}' is not a valid directory.", file=sys.stderr)
        return 1

    source = DirectoryPageSource(input_path)
    if source.page_count == 0:
        print(f"Error: no page images found in '{input_path}'.", file=sys.stderr)
        return 1

    resume_path = Path(arguments.resume_file or input_path / RESUME_FILENAME)
    if resume_path.exists() and not arguments.no_resume:
        state = BatchRunState.from_dict(json.loads(resume_path.read_text()))
        print(f"Resuming at page index {state.current_index} from {resume_path}")
    else:
        try:
            selected_pages = (
                parse_page_selection(arguments.pages, source.page_count)
                if arguments.pages
                else range(1, source.page_count + 1)
            )
            state = BatchRunState.start(
                selected_pages,
                continuous_rotation_enabled=arguments.continuous,
                continuous_threshold=arguments.threshold,
            )
        except ValueError as selection_error:
            print(f"Error: {selection_error}", file=sys.stderr)
            return 1

    _print_batch_header(input_path, source.page_count, len(state.target_pages), arguments)
    if arguments.dry_run:
        print("  DRY RUN - no requests will be sent")
        print(f"  Remaining pages: {list(state.remaining_pages)}\n")
        return 0

    cancel_token = CancellationToken()
    signal.signal(signal.SIGINT, lambda *_: cancel_token.cancel())

    with OrientationClient(arguments.server) as client:
        try:
            if not client.health().get("ocrEnabled", True):
                print("Error: OCR is disabled on the server.", file=sys.stderr)
                return 1
        except Exception as health_error:
            print(f"Error: server unreachable ({health_error}).", file=sys.stderr)
            return 1

        orchestrator = BatchOrientationOrchestrator(
            PageDetector(source, client),
            show_progress=True,
        )
        outcome = orchestrator.run(state, cancel_token)

    _print_outcome(outcome)

    if outcome.status is BatchStatus.COMPLETED:
        if resume_path.exists():
            resume_path.unlink()
    else:
        resume_path.write_text(json.dumps(outcome.state.to_dict(), indent=2))
        print(f"Snapshot saved to {resume_path}; run again to resume.")

    rotation_map = {str(page): rotation for page, rotation in sorted(outcome.rotation_map.items())}
    if arguments.output:
        Path(arguments.output).write_text(json.dumps(rotation_map, indent=2))
    else:
        print(json.dumps(rotation_map))

    return 0 if outcome.status is BatchStatus.COMPLETED else 1


def main() -> None:
    parser = _build_argument_parser()
    arguments = parser.parse_args()

    handlers = {
        "serve": _run_serve,
        "detect": _run_detect,
        "batch": _run_batch,
    }
    sys.exit(handlers[arguments.command](arguments))


if __name__ == "__main__":
    main()
