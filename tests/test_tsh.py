import io
import os
import signal
import sys
import time

import pytest

from sysprog.jobs import JobState
from sysprog.tsh import PROMPT, Shell, usage

SLEEPER = f"'{sys.executable}' -c 'import time;time.sleep(30)'"


def _reap_until(shell, predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        shell.handle_sigchld(signal.SIGCHLD, None)
        if predicate():
            return True
        time.sleep(0.02)
    return False


def _cleanup(pid):
    for sig in (signal.SIGCONT, signal.SIGKILL):
        try:
            os.kill(pid, sig)
        except ProcessLookupError:
            return
    try:
        os.waitpid(pid, 0)
    except ChildProcessError:
        pass


@pytest.fixture
def shell():
    return Shell(False, io.StringIO())


def test_jobs_builtin_lists_table(shell):
    shell.jobs.add(100, JobState.BG, "sleep 5 &\n")
    shell.eval("jobs\n")
    assert shell.out.getvalue() == "[1] (100) Running sleep 5 &\n"


def test_quit_exits_with_zero(shell):
    with pytest.raises(SystemExit) as info:
        shell.eval("quit\n")
    assert info.value.code == 0


def test_builtin_recognition(shell):
    assert shell.builtin(["&"]) is True
    assert shell.builtin(["jobs"]) is True
    assert shell.builtin(["ls"]) is False


def test_fg_requires_argument(shell):
    shell.do_bgfg(["fg"])
    assert shell.out.getvalue() == "fg command requires PID or %jobid argument\n"


def test_bg_rejects_bad_argument(shell):
    shell.do_bgfg(["bg", "abc"])
    assert shell.out.getvalue() == "bg: argument must be a PID or %jobid\n"


def test_missing_job_and_process(shell):
    shell.do_bgfg(["fg", "%5"])
    shell.do_bgfg(["bg", "12345"])
    assert shell.out.getvalue() == "%5: No such job\n(12345): No such process\n"


def test_command_not_found(shell):
    shell.eval("./definitely-missing-program\n")
    assert shell.out.getvalue() == "./definitely-missing-program: Command not found.\n"
    assert list(shell.jobs) == []


def test_foreground_job_runs_to_completion(shell):
    shell.eval(f"'{sys.executable}' -c pass\n")
    assert list(shell.jobs) == []
    assert shell.out.getvalue() == ""


def test_background_job_stop_continue_kill(shell):
    cmdline = SLEEPER + " &\n"
    shell.eval(cmdline)
    jobs = list(shell.jobs)
    assert len(jobs) == 1
    pid = jobs[0].pid
    try:
        assert shell.out.getvalue() == f"[1] ({pid}) {cmdline}"
        assert jobs[0].state is JobState.BG

        os.kill(pid, signal.SIGSTOP)
        assert _reap_until(shell, lambda: shell.jobs.by_pid(pid).state is JobState.ST)
        assert f"Job [1] ({pid}) stoped by signal {int(signal.SIGSTOP)}\n" in shell.out.getvalue()

        shell.do_bgfg(["bg", "%1"])
        assert shell.jobs.by_pid(pid).state is JobState.BG
        assert shell.out.getvalue().endswith(f"[1] ({pid}) {cmdline}")

        os.kill(pid, signal.SIGKILL)
        assert _reap_until(shell, lambda: shell.jobs.by_pid(pid) is None)
        assert (
            f"Job [1] ({pid}) terminated by signal {int(signal.SIGKILL)}\n"
            in shell.out.getvalue()
        )
    finally:
        _cleanup(pid)


def test_sigtstp_stops_foreground_job(shell):
    shell.eval(SLEEPER + " &\n")
    pid = next(iter(shell.jobs)).pid
    try:
        shell.jobs.by_pid(pid).state = JobState.FG
        assert shell.jobs.fg_pid() == pid
        shell.handle_sigtstp(signal.SIGTSTP, None)
        assert _reap_until(shell, lambda: shell.jobs.by_pid(pid).state is JobState.ST)
        assert shell.jobs.fg_pid() is None
    finally:
        _cleanup(pid)


def test_run_prompts_until_end_of_input(shell):
    shell.run(io.StringIO("jobs\n"), True)
    assert shell.out.getvalue() == PROMPT + PROMPT


def test_run_without_prompt_ignores_unterminated_line(shell):
    shell.jobs.add(100, JobState.BG, "x\n")
    shell.run(io.StringIO("jobs"), False)
    assert shell.out.getvalue() == ""


def test_usage_exits_with_one():
    out = io.StringIO()
    with pytest.raises(SystemExit) as info:
        usage(out)
    assert info.value.code == 1
    assert out.getvalue().startswith("Usage: shell [-hvp]\n")