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

"""Structured logging for librelease.

Events go through `structlog <https://www.structlog.org/>`_ into the
standard library root logger, which writes them to stderr. Stdout is kept
for command results (bumped versions, created tags) so they can be piped.

- Console (default): key/value lines, colored on a TTY, no timestamps.
- JSON (``--json-log``): one object per line with an ISO timestamp.

Every event carries whatever :func:`bind_run_context` bound for the
current run, e.g. the subcommand, so a CI log of several invocations can
be split apart.

Usage::

    from librelease.logging import bind_run_context, configure_logging, get_logger

    configure_logging(verbose=True)
    bind_run_context(command='bump')
    log = get_logger(__name__)
    log.info('library_bumped', library='lib1', old='1.0.0', new='1.1.0')
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _level_for(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return logging.INFO


def _pre_chain(*, json_log: bool) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if json_log:
        chain.append(structlog.processors.TimeStamper(fmt='iso', utc=True))
    chain.append(structlog.processors.format_exc_info)
    return chain


def _renderer(*, json_log: bool) -> structlog.types.Processor:
    if json_log:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route librelease events to stderr.

    Calling it again replaces the previous setup and clears any bound run
    context.

    Args:
        verbose: Also show debug events, including every git command.
        quiet: Warnings and errors only. Beats ``verbose``.
        json_log: Emit JSON lines instead of console key/values.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level_for(verbose=verbose, quiet=quiet),
        force=True,
    )
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            *_pre_chain(json_log=json_log),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_log=json_log),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def bind_run_context(**values: Any) -> None:  # noqa: ANN401
    """Attach ``values`` to every event logged for the rest of this run."""
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str = 'librelease') -> structlog.stdlib.BoundLogger:
    """Return the structlog logger for ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'bind_run_context',
    'configure_logging',
    'get_logger',
]
