"""Endless Halls CLI entry point.

Provides subcommands for running the HTTP server and for simulating a walk
through a freshly seeded world. Accepts configuration via flags and
environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()
_COLOR_ENABLED = True

# Disable colors if output is not a real terminal (e.g., during pytest capture)
try:
    if not sys.stdout.isatty():  # pragma: no cover - environment dependent
        _COLOR_ENABLED = False
except (AttributeError, ValueError):  # pragma: no cover
    _COLOR_ENABLED = False


def _load_version() -> str:
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "VERSION")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Endless Halls Maze Server

    Run the HTTP server that hosts procedurally generated worlds, or simulate
    a visitor walking through a seeded world and print a JSON summary.
    Configuration can be provided via CLI flags or environment variables. If
    both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                    Bind address for the web server (default: 0.0.0.0)
          PORT                    Port for the web server (default: 5000)
          HALLS_SEED              Default world seed
          HALLS_MAX_TOTAL_REGIONS Live region cap (default: 5)
          HALLS_LOG_LEVEL         debug | info | warn | error
          HALLS_LOG_JSON          Emit JSON log lines when truthy

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Walk 25 explorations through world 1234
          python run.py simulate --seed 1234 --steps 25

          # Load variables from .env then run the server
          python run.py --env-file .env server
        """
    )

    parser = argparse.ArgumentParser(
        prog="EndlessHalls",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Endless Halls Server {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the HTTP server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask server hosting world endpoints",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    sim_parser = subparsers.add_parser(
        "simulate",
        help="Walk a seeded world and print a JSON summary",
        formatter_class=argparse.RawTextHelpFormatter,
        description=dedent(
            """
            Create a world from --seed (or HALLS_SEED), then repeatedly enter the
            newest region and fire its exploration trigger. Each step also
            enters the first light zone of the region walked into.
            """
        ),
    )
    sim_parser.add_argument("--seed", type=int, default=None, help="World seed (default: env HALLS_SEED or random)")
    sim_parser.add_argument("--steps", type=int, default=10, help="Number of explorations (default: 10)")
    sim_parser.add_argument("--regions", action="store_true", help="Include full region geometry in the output")
    sim_parser.set_defaults(command="simulate")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    return parser.parse_args(argv)


def simulate(seed, steps: int, include_regions: bool = False) -> dict:
    from halls.maze import WorldConfig, WorldGraph

    config = WorldConfig.from_mapping(os.environ)
    world = WorldGraph(config, seed)
    walked = []
    for _ in range(max(0, steps)):
        current = next((n for n in world.regions.values() if n.has_trigger), None)
        if current is None:
            break
        if current.zone_ids:
            world.enter_zone(current.zone_ids[0])
        created = world.explore(current.index)
        walked.append({"entered": current.index, "created": created, "live": world.live_count})
    summary = world.to_dict()
    summary["walk"] = walked
    if include_regions:
        summary["regions"] = [n.to_dict() for _, n in sorted(world.regions.items())]
    return summary


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()

    if mode == "simulate":
        seed = args.seed
        if seed is None and os.getenv("HALLS_SEED"):
            seed = int(os.environ["HALLS_SEED"])
        print(json.dumps(simulate(seed, args.steps, args.regions), indent=2))
        return 0

    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)
    debug = bool(getattr(args, "debug", False))

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoint only after environment is ready
    from halls.server import start_server

    title = (
        f"{Fore.CYAN}{Style.BRIGHT}Endless Halls Bootup{Style.RESET_ALL}" if _COLOR_ENABLED else "Endless Halls Bootup"
    )

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Mode:'):12} {value(mode.upper())}",
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Version:'):12} {value(__version__)}",
        divider,
        "",
    ]
    print("\n".join(lines))

    from halls.logging_utils import log

    log.info(event="startup", mode=mode, host=host, port=port, version=__version__)
    start_server(host=host, port=port, debug=debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
