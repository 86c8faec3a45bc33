"""Tests for the process-level hook installer."""

from __future__ import annotations

import asyncio
import os
import subprocess
import sys
import threading
import warnings
from pathlib import Path
from unittest.mock import patch

from termai.core import ErrorHandlingSettings, ErrorHooks, ErrorManager, install_error_handling

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestErrorHooks:
    def setup_method(self):
        self.saved = (sys.excepthook, threading.excepthook, warnings.showwarning)

    def teardown_method(self):
        sys.excepthook, threading.excepthook, warnings.showwarning = self.saved

    def test_install_and_uninstall_restore_previous_hooks(self, manager):
        before = (sys.excepthook, threading.excepthook, warnings.showwarning)
        hooks = ErrorHooks(manager).install()
        assert hooks.installed
        assert sys.excepthook == hooks._excepthook
        assert threading.excepthook == hooks._thread_excepthook
        assert warnings.showwarning == hooks._showwarning

        hooks.uninstall()
        assert not hooks.installed
        assert (sys.excepthook, threading.excepthook, warnings.showwarning) == before

    def test_install_is_idempotent(self, manager):
        before = sys.excepthook
        hooks = ErrorHooks(manager)
        hooks.install()
        hooks.install()
        hooks.uninstall()
        assert sys.excepthook == before

    def test_excepthook_routes_uncaught_exception(self, manager, log, exit_func):
        with ErrorHooks(manager):
            error = RuntimeError("escaped")
            sys.excepthook(RuntimeError, error, None)

        assert log.sink("error")[0][1] == "Uncaught exception: escaped"
        assert exit_func.codes == []

    def test_keyboard_interrupt_goes_to_previous_hook(self, manager, log):
        calls = []
        sys.excepthook = lambda *args: calls.append(args)
        with ErrorHooks(manager):
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)

        assert len(calls) == 1
        assert log.calls == []

    def test_thread_exception_is_handled(self, manager, log, exit_func):
        def worker():
            raise ValueError("worker failed")

        with ErrorHooks(manager):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert log.sink("error")[0][1] == "Uncaught exception: worker failed"
        assert exit_func.codes == []

    def test_thread_exception_can_exit(self, manager, log, exit_func, abort_func):
        def worker():
            raise ValueError("worker failed")

        with ErrorHooks(manager, exit_on_uncaught=True):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert log.sink("error")[0][1] == "Uncaught exception: worker failed"
        assert abort_func.codes == [1]
        assert exit_func.codes == []

    def test_loop_exception_can_exit(self, manager, exit_func, abort_func):
        loop = asyncio.new_event_loop()
        try:
            hooks = ErrorHooks(manager, exit_on_uncaught=True)
            hooks.attach_loop(loop)
            loop.call_exception_handler({"message": "boom", "exception": OSError("gone")})
        finally:
            loop.close()

        assert abort_func.codes == [1]
        assert exit_func.codes == []

    def test_warnings_are_routed_as_minor(self, manager, log):
        with ErrorHooks(manager):
            warnings.showwarning("deprecated thing", DeprecationWarning, "mod.py", 12)

        _, label, _ = log.sink("warning")[0]
        assert label == "[APPLICATION] deprecated thing"
        assert manager.occurrences("application:minor:deprecated thing") == 1

    def test_loop_exception_routes_to_rejection(self, manager, log):
        loop = asyncio.new_event_loop()
        try:
            with ErrorHooks(manager) as hooks:
                hooks.attach_loop(loop)
                loop.call_exception_handler(
                    {"message": "Task exception was never retrieved", "exception": OSError("gone")}
                )
            assert loop.get_exception_handler() is None
        finally:
            loop.close()

        assert log.sink("error")[0][1] == "Unhandled async rejection: gone"

    def test_loop_message_without_exception(self, manager, log):
        loop = asyncio.new_event_loop()
        try:
            hooks = ErrorHooks(manager)
            hooks.attach_loop(loop)
            loop.call_exception_handler({"message": "something odd"})
        finally:
            loop.close()

        assert log.sink("error")[0][1] == "Unhandled async rejection: something odd"


class TestInstallErrorHandling:
    def setup_method(self):
        self.saved = (sys.excepthook, threading.excepthook, warnings.showwarning)

    def teardown_method(self):
        sys.excepthook, threading.excepthook, warnings.showwarning = self.saved

    def test_builds_manager_from_settings(self):
        settings = ErrorHandlingSettings(exit_on_uncaught=True)
        hooks = install_error_handling(settings=settings)
        try:
            assert isinstance(hooks.manager, ErrorManager)
            assert hooks.manager.settings is settings
            assert hooks.exit_on_uncaught is True
            assert hooks.installed
        finally:
            hooks.uninstall()

    def test_install_failure_still_returns_manager(self, manager):
        with patch.object(ErrorHooks, "install", side_effect=RuntimeError("locked")):
            hooks = install_error_handling(manager)
        assert hooks.manager is manager
        assert not hooks.installed


WORKER_SCRIPT = """
import threading
import time

from termai.core import ErrorHandlingSettings, install_error_handling

install_error_handling(settings=ErrorHandlingSettings(exit_on_uncaught=True))

def worker():
    raise RuntimeError("worker died")

thread = threading.Thread(target=worker)
thread.start()
thread.join()
time.sleep(0.5)
print("MAIN STILL RUNNING")
"""


class TestProcessExit:
    def _run(self, script: str) -> subprocess.CompletedProcess:
        env = {k: v for k, v in os.environ.items() if not k.upper().startswith("TERMAI_")}
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
        return subprocess.run(
            [sys.executable, "-c", script],
            cwd=str(REPO_ROOT),
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

    def test_worker_thread_exception_ends_process(self):
        result = self._run(WORKER_SCRIPT)

        assert result.returncode == 1
        assert "MAIN STILL RUNNING" not in result.stdout
        assert "Uncaught exception: worker died" in result.stderr

    def test_worker_thread_exception_without_exit_policy(self):
        result = self._run(WORKER_SCRIPT.replace("exit_on_uncaught=True", "exit_on_uncaught=False"))

        assert result.returncode == 0
        assert "MAIN STILL RUNNING" in result.stdout
