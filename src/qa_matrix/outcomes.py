"""Outcome code arithmetic."""

from typing import Iterable

from qa_matrix.types import OutcomeCode

# Shell convention for a command that could not be started
COMMAND_NOT_FOUND: OutcomeCode = 127


def normalize(returncode: int) -> OutcomeCode:
    """Map a subprocess return code onto a non-negative outcome.

    asyncio reports a child killed by signal N as -N; the shell reports
    128 + N, which keeps the value nonzero and non-negative.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def aggregate(running: OutcomeCode, next_code: OutcomeCode) -> OutcomeCode:
    return running + next_code


def total(codes: Iterable[OutcomeCode]) -> OutcomeCode:
    result = 0
    for code in codes:
        result = aggregate(result, code)
    return result


def exit_status(code: OutcomeCode) -> int:
    """Clamp an aggregate to a process exit status.

    Exit statuses are taken modulo 256 by the OS, so any failure is kept in
    1..255.
    """
    if code <= 0:
        return 0
    return min(code, 255)
