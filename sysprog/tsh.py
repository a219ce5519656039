"""Tiny interactive shell with foreground and background job control."""

from __future__ import annotations

import getopt
import os
import re
import signal
import sys
import time

from sysprog.jobs import MAXJOBS, JobList, JobListFull, JobState, parse_line

PROMPT = "tsh> "
_POLL_INTERVAL = 0.01
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_DIGITS = "0123456789"


class Shell:
    """Reads command lines, runs programs and keeps track of their jobs."""

    def __init__(self, verbose=False, out=None):
        self.out = sys.stdout if out is None else out
        self.jobs = JobList(MAXJOBS, verbose)
        self.jobs.out = self.out
        self._reaping = False

    def _write(self, text: str) -> None:
        self.out.write(text)

    def _kill(self, pid: int, sig: int) -> None:
        try:
            os.kill(pid, sig)
        except OSError as exc:
            self._write(f"Kill error: {exc.strerror}\n")
            raise SystemExit(1) from exc

    def eval(self, cmdline) -> None:
        """Run a built-in command at once, or start a program as a new job."""
        argv, background = parse_line(cmdline)
        if not argv or self.builtin(argv):
            return
        state = JobState.BG if background else JobState.FG
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGCHLD})
        try:
            try:
                pid = os.posix_spawn(
                    argv[0], argv, os.environ, setpgroup=0, setsigmask=previous
                )
            except OSError:
                self._write(f"{argv[0]}: Command not found.\n")
                return
            try:
                job = self.jobs.add(pid, state, cmdline)
            except JobListFull as exc:
                self._write(f"{exc}\n")
                return
            if state is JobState.FG:
                self.wait_fg(pid)
            else:
                self._write(f"[{job.jid}] ({pid}) {cmdline}")
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)

    def builtin(self, argv) -> bool:
        """Execute *argv* if it names a built-in command; True when it did."""
        name = argv[0]
        if name == "quit":
            raise SystemExit(0)
        if name in ("bg", "fg"):
            self.do_bgfg(argv)
            return True
        if name == "jobs":
            self._write(self.jobs.listing())
            return True
        return name == "&"

    def do_bgfg(self, argv) -> None:
        """Continue a job, by PID or %jobid, in the background or foreground."""
        name = argv[0]
        state = JobState.BG if name == "bg" else JobState.FG
        if len(argv) < 2:
            self._write(f"{name} command requires PID or %jobid argument\n")
            return
        arg = argv[1]
        job = None
        if arg.startswith("%"):
            match = _LEADING_INT.match(arg, 1)
            if match is None:
                self._write(f"{name}: argument must be a PID or %jobid\n")
                return
            jid = int(match.group(1))
            job = self.jobs.by_jid(jid)
            if job is None:
                self._write(f"%{jid}: No such job\n")
                return
        elif arg[:1] == "" or arg[0] not in _DIGITS:
            self._write(f"{name}: argument must be a PID or %jobid\n")
            return
        else:
            pid = int(_LEADING_INT.match(arg).group(1))
            job = self.jobs.by_pid(pid)
            if job is None:
                self._write(f"({pid}): No such process\n")
                return

        if state is JobState.BG:
            self._kill(-job.pid, signal.SIGCONT)
            job.state = state
            self._write(f"[{job.jid}] ({job.pid}) {job.cmdline}")
            return
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGCHLD})
        try:
            self._kill(-job.pid, signal.SIGCONT)
            job.state = state
            self.wait_fg(job.pid)
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)

    def wait_fg(self, pid) -> None:
        """Block until no job is running in the foreground."""
        while self.jobs.fg_pid() is not None:
            self._reap()
            if self.jobs.fg_pid() is None:
                break
            time.sleep(_POLL_INTERVAL)

    def _reap(self) -> None:
        if self._reaping:
            return
        self._reaping = True
        try:
            while True:
                try:
                    pid, status = os.waitpid(-1, os.WNOHANG | os.WUNTRACED)
                except ChildProcessError:
                    break
                if pid == 0:
                    break
                if os.WIFEXITED(status):
                    self.jobs.delete(pid)
                elif os.WIFSIGNALED(status):
                    self._write(
                        f"Job [{self.jobs.pid_to_jid(pid)}] ({pid}) "
                        f"terminated by signal {os.WTERMSIG(status)}\n"
                    )
                    self.jobs.delete(pid)
                elif os.WIFSTOPPED(status):
                    self._write(
                        f"Job [{self.jobs.pid_to_jid(pid)}] ({pid}) "
                        f"stoped by signal {os.WSTOPSIG(status)}\n"
                    )
                    job = self.jobs.by_pid(pid)
                    if job is not None:
                        job.state = JobState.ST
        finally:
            self._reaping = False

    def handle_sigchld(self, signum, frame) -> None:
        """Reap every finished or stopped child without waiting for running ones."""
        self._reap()

    def handle_sigint(self, signum, frame) -> None:
        """Pass an interrupt on to the foreground job's process group."""
        pid = self.jobs.fg_pid()
        if pid is not None:
            self._kill(-pid, signal.SIGINT)

    def handle_sigtstp(self, signum, frame) -> None:
        """Stop the foreground job's process group."""
        pid = self.jobs.fg_pid()
        if pid is not None:
            self._kill(-pid, signal.SIGSTOP)

    def _handle_sigquit(self, signum, frame) -> None:
        """Report the quit request on the shell's output and leave with status 1."""
        self._write("Terminating after receipt of SIGQUIT signal\n")
        self.out.flush()
        raise SystemExit(1)

    def run(self, stream=None, emit_prompt=True) -> None:
        """Read and evaluate command lines until end of input."""
        stream = sys.stdin if stream is None else stream
        while True:
            if emit_prompt:
                self._write(PROMPT)
                self.out.flush()
            line = stream.readline()
            if not line.endswith("\n"):
                self.out.flush()
                return
            self.eval(line)
            self.out.flush()


def usage(out=None) -> None:
    """Print the option summary and exit with status 1."""
    out = sys.stdout if out is None else out
    out.write(
        "Usage: shell [-hvp]\n"
        "   -h   print this message\n"
        "   -v   print additional diagnostic information\n"
        "   -p   do not emit a command prompt\n"
    )
    out.flush()
    raise SystemExit(1)


def main(argv=None) -> int:
    """Start the interactive shell."""
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.flush()
    sys.stderr.flush()
    os.dup2(1, 2)

    try:
        opts, _rest = getopt.getopt(args, "hvp")
    except getopt.GetoptError:
        usage(sys.stdout)
    verbose = False
    emit_prompt = True
    for opt, _value in opts:
        if opt == "-h":
            usage(sys.stdout)
        elif opt == "-v":
            verbose = True
        elif opt == "-p":
            emit_prompt = False

    shell = Shell(verbose, sys.stdout)
    signal.signal(signal.SIGINT, shell.handle_sigint)
    signal.signal(signal.SIGTSTP, shell.handle_sigtstp)
    signal.signal(signal.SIGCHLD, shell.handle_sigchld)
    signal.signal(signal.SIGQUIT, shell._handle_sigquit)

    shell.run(sys.stdin, emit_prompt)
    return 0