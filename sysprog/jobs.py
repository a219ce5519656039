"""Job table and command-line parsing for a job-control shell."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import Iterator

MAXJOBS = 16
MAXJID = 1 << 16


class JobState(enum.IntEnum):
    """Where a job runs: nowhere, in the foreground, in the background, or stopped."""

    UNDEF = 0
    FG = 1
    BG = 2
    ST = 3


_STATE_WORDS = {
    JobState.BG: "Running",
    JobState.FG: "Foreground",
    JobState.ST: "Stopped",
}


@dataclass
class Job:
    """One slot of the job table; a pid of 0 marks a free slot."""

    pid: int = 0
    jid: int = 0
    state: JobState = JobState.UNDEF
    cmdline: str = ""

    def clear(self) -> None:
        self.pid = 0
        self.jid = 0
        self.state = JobState.UNDEF
        self.cmdline = ""


class JobListFull(RuntimeError):
    """Raised when every slot of the job table is taken."""


class JobList:
    """Fixed number of job slots with job IDs handed out in turn."""

    def __init__(self, max_jobs=MAXJOBS, verbose=False):
        if max_jobs <= 0:
            raise ValueError("job table must have at least one slot")
        self.max_jobs = max_jobs
        self.verbose = verbose
        self.out = None
        self._slots = [Job() for _ in range(max_jobs)]
        self._next_jid = 1

    def _stream(self):
        return sys.stdout if self.out is None else self.out

    def add(self, pid, state, cmdline) -> Job:
        """Put a job in the first free slot and return it."""
        if pid < 1:
            raise ValueError(f"invalid process id {pid}")
        for job in self._slots:
            if job.pid == 0:
                job.pid = pid
                job.state = JobState(state)
                job.jid = self._next_jid
                self._next_jid += 1
                if self._next_jid > self.max_jobs:
                    self._next_jid = 1
                job.cmdline = cmdline
                if self.verbose:
                    print(f"Added job [{job.jid}] {job.pid} {job.cmdline}", file=self._stream())
                return job
        raise JobListFull("Tried to create too many jobs")

    def delete(self, pid) -> bool:
        """Remove the job with process ID *pid*; False when there is none."""
        if pid < 1:
            return False
        job = self.by_pid(pid)
        if job is None:
            return False
        job.clear()
        self._next_jid = self.max_jid() + 1
        return True

    def fg_pid(self) -> int | None:
        """Process ID of the foreground job, or None."""
        for job in self._slots:
            if job.state is JobState.FG:
                return job.pid
        return None

    def by_pid(self, pid) -> Job | None:
        if pid < 1:
            return None
        return next((job for job in self._slots if job.pid == pid), None)

    def by_jid(self, jid) -> Job | None:
        if jid < 1:
            return None
        return next((job for job in self._slots if job.jid == jid), None)

    def pid_to_jid(self, pid) -> int:
        """Job ID of process *pid*, or 0 when it is not a job."""
        job = self.by_pid(pid)
        return job.jid if job is not None else 0

    def max_jid(self) -> int:
        return max((job.jid for job in self._slots), default=0)

    def listing(self) -> str:
        """Text of the job table, one job per line, as the jobs command prints it."""
        parts = []
        for index, job in enumerate(self._slots):
            if job.pid == 0:
                continue
            parts.append(f"[{job.jid}] ({job.pid}) ")
            word = _STATE_WORDS.get(job.state)
            if word is None:
                parts.append(
                    f"listjobs: Internal error: job[{index}].state={int(job.state)} "
                )
            else:
                parts.append(word + " ")
            parts.append(job.cmdline)
        return "".join(parts)

    def __iter__(self) -> Iterator[Job]:
        return (job for job in self._slots if job.pid != 0)


def _skip_spaces(buf: str, pos: int) -> int:
    return len(buf) - len(buf[pos:].lstrip(" "))


def parse_line(cmdline: str) -> tuple[list[str], bool]:
    """Split a command line into arguments and say whether it runs in the background.

    The final character, normally the newline, is dropped. Text between
    single quotes forms one argument. A blank line counts as background.
    """
    if not cmdline:
        return [], True
    buf = cmdline[:-1] + " "
    pos = _skip_spaces(buf, 0)
    argv: list[str] = []
    while True:
        if buf.startswith("'", pos):
            pos += 1
            delim = buf.find("'", pos)
        else:
            delim = buf.find(" ", pos)
        if delim < 0:
            break
        argv.append(buf[pos:delim])
        pos = _skip_spaces(buf, delim + 1)
    if not argv:
        return argv, True
    background = argv[-1].startswith("&")
    if background:
        argv.pop()
    return argv, background