"""CLI entry point for PersistX."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from persistx import __version__, logger
from persistx.exceptions import PackageError, UsageError
from persistx.logging import configure_logging
from persistx.settings import DEFAULT_MIN_SCORE, DEFAULT_SCHEMA_FILE, Settings, get_settings
from persistx.tooling.diff import run_diff
from persistx.tooling.init import run_init
from persistx.tooling.migrate import run_migrate
from persistx.typing.models import DiffOptions, MigrateOptions

_EPILOG = """\
examples:
  persistx init
  persistx diff --file ./definitions/schema.json
  persistx diff --file ./definitions/schema.json --apply
  persistx diff --file ./definitions/schema.json --yes
  persistx migrate --form petProfile --from 1 --to 2 --input ./payload.json --apply
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message: str) -> NoReturn:
        """Print usage and the error, then exit with status 1."""
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _add_schema_file_argument(parser: argparse.ArgumentParser, default: str) -> None:
    parser.add_argument(
        "--file",
        type=Path,
        default=Path(default),
        help=f"Schema file path (default: {default})",
    )


def _add_version_range_arguments(parser: argparse.ArgumentParser, verb: str) -> None:
    parser.add_argument("--from", type=int, default=None, dest="from_version", help=f"{verb} from version")
    parser.add_argument("--to", type=int, default=None, dest="to_version", help=f"{verb} to version")


def build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    """Create the command-line parser.

    Args:
        settings (Settings | None): Source of the `--file` and `--min-score` defaults.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    schema_file = settings.schema_file if settings else DEFAULT_SCHEMA_FILE
    min_score = settings.min_score if settings else DEFAULT_MIN_SCORE

    parser = _ArgumentParser(
        prog="persistx",
        description="Schema contract tooling: starter schema, rename suggestions and payload migration.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init", help="Create a starter schema file")
    _add_schema_file_argument(init_parser, schema_file)
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing schema file")

    diff_parser = subparsers.add_parser("diff", help="Suggest alias mappings (field renames) between versions")
    _add_schema_file_argument(diff_parser, schema_file)
    diff_parser.add_argument("--cwd", type=Path, default=None, help="Base directory to resolve --file")
    diff_parser.add_argument("--apply", action="store_true", help="Write accepted aliases to the schema file")
    diff_parser.add_argument("--yes", action="store_true", help="Non-interactive; accept safe suggestions only")
    diff_parser.add_argument(
        "--force-yes",
        action="store_true",
        dest="force_yes",
        help="With --yes, also accept ambiguous or generic-target suggestions",
    )
    diff_parser.add_argument(
        "--min-score",
        type=float,
        default=min_score,
        dest="min_score",
        help=f"Minimum suggestion score (default: {min_score:.2f})",
    )
    diff_parser.add_argument(
        "--strict",
        action="store_true",
        help='Require very high confidence before mapping into generic keys such as "type" or "id"',
    )
    diff_parser.add_argument("--form", default=None, help="Only run for one formKey")
    _add_version_range_arguments(diff_parser, "Compare")

    migrate_parser = subparsers.add_parser("migrate", help="Transform payload JSON from one version to another")
    _add_schema_file_argument(migrate_parser, schema_file)
    migrate_parser.add_argument("--cwd", type=Path, default=None, help="Base directory to resolve --file/--input/--out")
    migrate_parser.add_argument("--form", required=True, help="formKey of the payloads")
    _add_version_range_arguments(migrate_parser, "Migrate")
    migrate_parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="JSON file holding one payload or an array of payloads",
    )
    migrate_parser.add_argument("--out", type=Path, default=None, help="Output file (default: <input>.migrated.json)")
    migrate_parser.add_argument("--apply", action="store_true", help="Write the migrated output")
    migrate_parser.add_argument(
        "--keep-unknown",
        action="store_true",
        dest="keep_unknown",
        help="Keep unmapped keys under _unknown instead of dropping them",
    )
    migrate_parser.add_argument("--report", action="store_true", help="Print a per-payload report to stderr")

    return parser


def _check_version_range(args: argparse.Namespace) -> None:
    for option, value in (("--from", args.from_version), ("--to", args.to_version)):
        if value is not None and value < 1:
            raise UsageError(message=f"{option} must be an integer >= 1")


def _build_diff_options(args: argparse.Namespace) -> DiffOptions:
    """Build diff options from CLI arguments.

    Args:
        args (argparse.Namespace): Parsed CLI args.

    Raises:
        UsageError: If `--min-score` or a version is out of range.

    Returns:
        DiffOptions: Options object.
    """
    if not 0.0 <= args.min_score <= 1.0:
        raise UsageError(message="--min-score must be between 0 and 1")
    _check_version_range(args)

    return DiffOptions(
        file=args.file,
        cwd=args.cwd,
        apply=args.apply,
        yes=args.yes,
        force_yes=args.force_yes,
        min_score=args.min_score,
        strict=args.strict,
        form=args.form,
        from_version=args.from_version,
        to_version=args.to_version,
    )


def _build_migrate_options(args: argparse.Namespace) -> MigrateOptions:
    """Build migrate options from CLI arguments.

    Args:
        args (argparse.Namespace): Parsed CLI args.

    Raises:
        UsageError: If a version is out of range.

    Returns:
        MigrateOptions: Options object.
    """
    _check_version_range(args)

    return MigrateOptions(
        file=args.file,
        cwd=args.cwd,
        form=args.form,
        input=args.input,
        out=args.out,
        from_version=args.from_version,
        to_version=args.to_version,
        apply=args.apply,
        keep_unknown=args.keep_unknown,
        report=args.report,
    )


def _dispatch(args: argparse.Namespace) -> None:
    if args.command == "init":
        run_init(args.file, force=args.force)
    elif args.command == "diff":
        run_diff(_build_diff_options(args))
    elif args.command == "migrate":
        run_migrate(_build_migrate_options(args))


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments, `sys.argv[1:]` when omitted.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    try:
        settings = get_settings()
    except PackageError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    configure_logging(settings=settings)

    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        _dispatch(args)
    except PackageError as exc:
        logger.debug("Command failed", extra={"command": args.command}, exc_info=True)
        print(str(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Command aborted by user", extra={"command": args.command})
        return 130
    except Exception as exc:
        logger.exception("Unexpected error", extra={"command": args.command})
        print(str(exc) or type(exc).__name__, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
