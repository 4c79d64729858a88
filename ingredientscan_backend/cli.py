"""Command-line capture surface for ingredient analysis."""

import argparse
import sys

from ingredientscan_backend.services.analysis import (
    ANALYSIS_FAILED_TITLE,
    NO_INGREDIENTS_DESCRIPTION,
    NO_INGREDIENTS_TITLE,
    AnalysisOutcome,
)
from ingredientscan_backend.services.analysis_parser import (
    AnalysisRecord,
    summarize_records,
)
from ingredientscan_backend.services.images import ImageFrame, load_image_file
from ingredientscan_backend.services.remote import (
    AnalysisRequestError,
    AnalysisServiceClient,
)

_PREVIEW_WINDOW = "IngredientScan - SPACE capture, S switch camera, Q quit"


def render_table(records: list[AnalysisRecord]) -> str:
    """Format records as an aligned text table followed by a summary line."""
    if not records:
        return f"{NO_INGREDIENTS_TITLE}\n{NO_INGREDIENTS_DESCRIPTION}"

    name_width = max(len("Ingredient"), *(len(r.name) for r in records))
    lines = [
        f"{'Ingredient':<{name_width}}  {'Harm Scale':<17}  Potential Health Concerns",
        "-" * (name_width + 48),
    ]
    for record in records:
        harm = f"{record.harm_scale}/10 [{record.risk_band.value}]"
        concerns = ", ".join(record.health_concerns) or "-"
        lines.append(f"{record.name:<{name_width}}  {harm:<17}  {concerns}")
    lines.append("")
    lines.append(summarize_records(records))
    return "\n".join(lines)


def _submit(frame: ImageFrame, server: str | None) -> AnalysisOutcome:
    client = AnalysisServiceClient(server)
    print(f"Analyzing ingredients via {client.endpoint} ...")
    try:
        return client.analyze(frame)
    except AnalysisRequestError as e:
        print(f"{ANALYSIS_FAILED_TITLE}: {e}")
        sys.exit(1)


def _report(outcome: AnalysisOutcome) -> None:
    print(render_table(outcome.records))
    if outcome.is_empty:
        sys.exit(1)


def analyze(args):
    """Analyze an image file that is already on disk."""
    try:
        frame = load_image_file(args.image)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    _report(_submit(frame, args.server))


def _preview_until_capture(camera):
    # Imported here so headless commands never touch the GUI backend.
    import cv2

    try:
        while camera.is_active:
            preview = camera.read_preview()
            if preview is not None:
                cv2.imshow(_PREVIEW_WINDOW, preview)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord(" "), 13):
                return camera.capture()
            if key in (ord("s"), ord("S")):
                facing = camera.switch_facing()
                print(f"Switched to {facing} camera")
                if not camera.start():
                    return None
            if key in (ord("q"), ord("Q"), 27):
                return None
        return None
    finally:
        cv2.destroyAllWindows()


def capture(args):
    """Capture one frame from the camera and analyze it."""
    from ingredientscan_backend.services.capture import CameraCapture, CaptureSettings

    settings = CaptureSettings(facing=args.facing)
    if args.device is not None:
        settings.environment_device = args.device
        settings.user_device = args.device

    with CameraCapture(settings) as camera:
        if not camera.start():
            print("Error: could not access the camera. Check permissions and try again.")
            sys.exit(1)
        frame = _preview_until_capture(camera) if args.preview else camera.capture()

    if frame is None:
        print("No image captured.")
        sys.exit(1)

    print(f"Captured {len(frame.data)} bytes ({frame.mime_type})")
    _report(_submit(frame, args.server))


def serve(args):
    """Run the Flask development server."""
    from ingredientscan_backend import create_app

    create_app().run(host=args.host, port=args.port)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="IngredientScan - rate food packaging ingredients from a photo"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze an existing image file")
    analyze_parser.add_argument("image", help="Path to a photo of food packaging")
    analyze_parser.add_argument(
        "--server",
        default=None,
        help="IngredientScan server URL (default: $INGREDIENTSCAN_SERVER_URL or http://localhost:8000)",
    )
    analyze_parser.set_defaults(func=analyze)

    capture_parser = subparsers.add_parser("capture", help="Capture a photo from the camera and analyze it")
    capture_parser.add_argument(
        "--facing",
        choices=["environment", "user"],
        default="environment",
        help="Back (environment) or front (user) camera (default: environment)",
    )
    capture_parser.add_argument(
        "--device",
        type=int,
        default=None,
        help="OpenCV device index, overrides --facing",
    )
    capture_parser.add_argument(
        "--preview",
        action="store_true",
        help="Show a live preview window and capture on SPACE",
    )
    capture_parser.add_argument("--server", default=None, help="IngredientScan server URL")
    capture_parser.set_defaults(func=capture)

    serve_parser = subparsers.add_parser("serve", help="Run the analysis server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=serve)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
