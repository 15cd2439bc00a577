from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .builder import SiteBuilder
from .config import DEFAULT_CONFIG, load_config
from .errors import SiteError
from .log import setup_logging
from .scaffold import init_site
from .watch import WatchCoordinator

COMMANDS = ("init", "build", "server", "help")


class HelpfulArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        print(f"{self.prog}: {message}", file=sys.stderr)
        self.print_help()
        sys.exit(0)


def make_parser() -> argparse.ArgumentParser:
    parser = HelpfulArgumentParser(prog="staticgen", description="Static site generator.")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file processed.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors.")
    sub = parser.add_subparsers(dest="command", parser_class=HelpfulArgumentParser)

    init = sub.add_parser("init", help="Create a new site skeleton.")
    init.add_argument("path", nargs="?", default=".", help="Directory to create the site in.")
    init.add_argument("--name", default="My Site", help="Site name written to the config.")

    build = sub.add_parser("build", help="Build the site once.")
    build.add_argument("--clean", action="store_true", help="Delete the output directory before building.")

    server = sub.add_parser("server", help="Serve the output and rebuild on changes.")
    server.add_argument("--host", default=None, help="Address to bind the preview server to.")
    server.add_argument("--port", default=None, type=int, help="Port for the preview server.")

    sub.add_parser("help", help="Show this message.")
    return parser


def cmd_init(args: argparse.Namespace) -> int:
    root = Path(args.path)
    created = init_site(root, name=args.name)
    print(f"Created {len(created)} paths in: {root.resolve()}")
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    if args.clean:
        config = replace(config, clean=True)
    report = SiteBuilder(config).run()
    if not report.ok:
        print(f"Build failed while {report.failed_stage.value}: {report.error}", file=sys.stderr)
        return 1
    print(f"Build completed in {report.elapsed:.2f}s.")
    print(f"Site generated in: {config.output_dir}")
    return 0


def cmd_server(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    coordinator = WatchCoordinator(
        SiteBuilder(config),
        config.watch_roots,
        config.output_dir,
        host=args.host if args.host is not None else config.host,
        port=args.port if args.port is not None else config.port,
    )
    coordinator.serve_forever()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = make_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    if args.command not in COMMANDS or args.command == "help":
        parser.print_help()
        return 0

    level = "DEBUG" if args.verbose else "WARNING" if args.quiet else "INFO"
    setup_logging(level)
    handlers = {"init": cmd_init, "build": cmd_build, "server": cmd_server}
    try:
        return handlers[args.command](args)
    except (SiteError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
