# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for librelease.

Subcommands::

    librelease bump <library> [--version V] [--dry-run]
    librelease bump --all [--dry-run]
    librelease release ...            (alias of bump)
    librelease tag [--library NAME]
    librelease explain LR-VERSION-NO-OP

Global flags: ``--root`` (repository root, default ``.``), ``--verbose``,
``--quiet`` and ``--json-log``.

Exit codes: 0 on success (including "nothing to bump"), 1 on any
:class:`~librelease.errors.LibReleaseError`, 2 when no command is given,
130 when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich_argparse import RichHelpFormatter

from librelease import __version__
from librelease.bump import run_bump
from librelease.errors import LibReleaseError, explain, render_error
from librelease.logging import bind_run_context, configure_logging, get_logger
from librelease.tags import run_tag

logger = get_logger(__name__)


async def _cmd_bump(args: argparse.Namespace) -> int:
    """Handle the ``bump`` subcommand."""
    result = await run_bump(
        Path(args.root),
        library=args.library or '',
        all_libraries=args.all,
        version_override=args.set_version or '',
        dry_run=args.dry_run,
    )
    if not result.bumps:
        print('Nothing to bump.')  # noqa: T201 - CLI output
        return 0
    prefix = 'Would bump' if result.dry_run else 'Bumped'
    for bump in result.bumps:
        old = bump.old_version or '(unreleased)'
        print(f'{prefix} {bump.name}: {old} -> {bump.new_version}')  # noqa: T201 - CLI output
    return 0


async def _cmd_tag(args: argparse.Namespace) -> int:
    """Handle the ``tag`` subcommand."""
    result = await run_tag(Path(args.root), library=args.library or '')
    for tag in result.tags:
        print(f'{tag} -> {result.commit}')  # noqa: T201 - CLI output
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='librelease',
        description='Version bumps and release tags for multi-library repositories.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--root',
        default='.',
        metavar='DIR',
        help='Repository root containing librelease.yaml (default: current directory).',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Show debug output, including git commands.')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only show warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines.')

    subparsers = parser.add_subparsers(dest='command')

    bump_parser = subparsers.add_parser(
        'bump',
        aliases=['release'],
        help='Bump the version of one library, or of every changed library.',
        formatter_class=RichHelpFormatter,
    )
    bump_parser.add_argument('library', nargs='?', help='Library to bump.')
    bump_parser.add_argument(
        '--all',
        action='store_true',
        help='Bump every released library with changes since its last release tag.',
    )
    bump_parser.add_argument(
        '--version',
        dest='set_version',
        metavar='VERSION',
        help='Use this exact version instead of deriving one (single library only).',
    )
    bump_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print the planned bumps without writing anything.',
    )

    tag_parser = subparsers.add_parser(
        'tag',
        help='Tag the latest release commit with one tag per released library.',
        formatter_class=RichHelpFormatter,
    )
    tag_parser.add_argument(
        '--library',
        help='Find the latest commit that released this library (default: any library).',
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument('code', help='Error code, e.g. LR-VERSION-NO-OP.')

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)
    if args.command:
        bind_run_context(command=args.command)

    try:
        command = args.command
        if command in ('bump', 'release'):
            return asyncio.run(_cmd_bump(args))
        if command == 'tag':
            return asyncio.run(_cmd_tag(args))
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except LibReleaseError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Console script wrapper around :func:`main`."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]


if __name__ == '__main__':
    _main()
