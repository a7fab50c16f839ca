"""
Binwise CLI - Command-line interface.

Usage:
    binwise classify <image> --location "Springfield, Illinois, USA"
    binwise classify --camera 0 --lat 39.78 --lon -89.65
    binwise serve --port 8000
"""

import argparse
import asyncio
import sys


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Binwise - Is it recyclable where you are?",
        prog="binwise",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Classify command
    classify_parser = subparsers.add_parser("classify", help="Classify an object from a photo or camera")
    classify_parser.add_argument("image", nargs="?", help="Path to an image file")
    classify_parser.add_argument("--camera", type=int, help="Capture from this camera index instead")
    classify_parser.add_argument("--location", help="Location text (overrides lookup)")
    classify_parser.add_argument("--lat", type=float, help="Latitude for location lookup")
    classify_parser.add_argument("--lon", type=float, help="Longitude for location lookup")
    classify_parser.add_argument("--html", action="store_true", help="Print rendered markup instead of text")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    if args.command == "classify":
        cmd_classify(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_classify(args):
    """Classify one object."""
    if not args.image and args.camera is None:
        print("Error: provide an image path or --camera")
        sys.exit(1)

    exit_code = asyncio.run(_classify(args))
    if exit_code:
        sys.exit(exit_code)


async def _classify(args) -> int:
    from .capture import OpenCVCamera, StillImageDevice
    from .config import Settings, configure_logging
    from .errors import CameraError, NoFrameAvailableError
    from .geo import FixedPosition
    from .present import PresenterStatus
    from .session import SessionManager

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if args.image:
        try:
            device = StillImageDevice.from_path(args.image)
        except FileNotFoundError:
            print(f"Error: File not found: {args.image}")
            return 1
    else:
        device = OpenCVCamera(args.camera)

    position = None
    if args.lat is not None and args.lon is not None:
        position = FixedPosition(args.lat, args.lon)

    try:
        manager = SessionManager(settings=settings, device_factory=lambda: device)
        session = manager.create_session(position=position, location=args.location)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    try:
        if session.resolver and not session.location.edited:
            await session.resolver.populate(session.location)
        if session.location.value:
            print(f"Location: {session.location.value}")
        else:
            print("Warning: no location resolved; pass --location for local rules")

        if not await session.start_camera():
            print(f"Error: {session.capture.last_error}")
            return 1
        try:
            await session.capture_frame()
        except (NoFrameAvailableError, CameraError) as e:
            print(f"Error: {e}")
            return 1

        shown = 0
        final = None
        async for snapshot in session.submit():
            final = snapshot
            if args.html:
                continue
            if len(snapshot.text) > shown:
                print(snapshot.text[shown:], end="", flush=True)
                shown = len(snapshot.text)

        if args.html and final:
            print(final.markup)
        elif final and final.status == PresenterStatus.FAILED:
            print(f"\n---\n{final.error}")
        else:
            print()

        if final:
            print(f"Verdict: {final.signal.value}")
        return 1 if final and final.status == PresenterStatus.FAILED else 0
    finally:
        await manager.close_all()


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    from .api.app import run

    run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
