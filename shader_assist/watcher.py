"""
Shader watch loop.

Polls the shader source directory at a fixed interval, compiles new and
modified shaders one at a time, and reacts to the command channel:

    IDLE -> SCANNING -> DISPATCHING -> SLEEPING -> SCANNING -> ... -> STOPPED

The exit signal is checked before every pass; a pass that has already
started (including a running compiler process) always completes.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from .compiler import CompileDispatcher, CompileResult
from .config import ShaderAssistConfig
from .detector import Action, ChangeDetector, Decision
from .registry import FileRegistry
from .signals import CommandChannel

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0


class WatchState(str, Enum):
    """Watch loop states."""
    IDLE = "idle"
    SCANNING = "scanning"
    DISPATCHING = "dispatching"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class ShaderWatcher:
    """
    Watches a shader directory and recompiles changed files.

    The registry is only touched from the thread running the loop; other
    threads talk to it through the CommandChannel.

    Example:
        >>> watcher = ShaderWatcher(config)
        >>> watcher.start()
        >>> watcher.channel.request_recompile()
        >>> watcher.stop()
    """

    def __init__(
        self,
        config: ShaderAssistConfig,
        channel: Optional[CommandChannel] = None,
        dispatcher: Optional[CompileDispatcher] = None,
        detector: Optional[ChangeDetector] = None,
        registry: Optional[FileRegistry] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        on_compile: Optional[Callable[[CompileResult], None]] = None,
        history_size: int = 100,
    ):
        """
        Initialize the watcher.

        Args:
            config: Directories, extensions and compiler settings
            channel: Command channel shared with the control surface
            dispatcher: Compiler runner (defaults to CompileDispatcher(config))
            detector: Change detector (defaults to ChangeDetector(config))
            registry: Known file state (defaults to an empty registry)
            interval: Seconds to sleep between passes
            on_compile: Callback for every compile result
            history_size: Number of compile results kept for diagnostics
        """
        self.config = config
        self.channel = channel or CommandChannel()
        self.dispatcher = dispatcher or CompileDispatcher(config)
        self.detector = detector or ChangeDetector(config)
        self.registry = registry if registry is not None else FileRegistry()
        self.interval = interval
        self.on_compile = on_compile

        self._state = WatchState.IDLE
        self._first_iteration = True
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        # Stats
        self._passes = 0
        self._compiled = 0
        self._failed = 0
        self._results: Deque[CompileResult] = deque(maxlen=history_size)

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def first_iteration(self) -> bool:
        return self._first_iteration

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run the loop in a background thread."""
        if self.is_running:
            return

        self._thread = threading.Thread(
            target=self.run,
            name="ShaderWatcher",
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Request exit and wait for the loop to finish its current pass.

        Returns:
            True if the loop thread has exited
        """
        self.channel.request_exit()
        return self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the loop thread without signalling it."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("ShaderWatcher did not stop in time")
            return False
        return True

    def run(self) -> None:
        """Main watch loop. Returns once exit is requested."""
        logger.info(
            f"Watching {self.config.shader_source_path} for "
            f"{', '.join(self.config.stage_extensions)}"
        )
        try:
            while not self.channel.exit_requested:
                try:
                    self.run_pass()
                except Exception:
                    logger.exception("Watch pass failed")

                self._state = WatchState.SLEEPING
                if self.channel.wait_for_exit(self.interval):
                    break
        finally:
            self._state = WatchState.STOPPED
            logger.info("ShaderWatcher stopped")

    def run_pass(self) -> List[CompileResult]:
        """
        Scan once and compile whatever needs compiling.

        A forced recompile observed at the start of the pass is cleared
        when the pass ends. The first-iteration flag is dropped once a
        scan has completed, so a failed first scan is retried as a first scan.
        """
        force = self.channel.recompile_requested
        if force:
            logger.info("Forced recompile of all shaders")

        results: List[CompileResult] = []
        try:
            self._state = WatchState.SCANNING
            decisions = self.detector.scan(
                self.registry,
                first_scan=self._first_iteration,
                force=force,
            )
            self._first_iteration = False

            self._state = WatchState.DISPATCHING
            for decision in decisions:
                if not decision.action.compiles:
                    continue
                result = self._dispatch(decision)
                if result is not None:
                    results.append(result)
        finally:
            if force:
                self.channel.clear_recompile()
            with self._lock:
                self._passes += 1

        return results

    def _dispatch(self, decision: Decision) -> Optional[CompileResult]:
        name = decision.path.name
        if decision.action is Action.COMPILE_NEW:
            logger.info(f"Newly recognized file: {name}, compiling...")
        else:
            logger.info(f"File {name} is modified, recompiling...")

        try:
            result = self.dispatcher.compile(decision.path)
        except Exception:
            logger.exception(f"Compile dispatch crashed for {name}")
            with self._lock:
                self._failed += 1
            return None

        with self._lock:
            self._results.append(result)
            if result.success:
                self._compiled += 1
            else:
                self._failed += 1

        if self.on_compile:
            try:
                self.on_compile(result)
            except Exception as e:
                logger.error(f"Compile callback failed: {e}")

        return result

    def get_results(self) -> List[CompileResult]:
        """Recent compile results, oldest first."""
        with self._lock:
            return list(self._results)

    def stats(self) -> Dict:
        with self._lock:
            return {
                "state": self._state.value,
                "passes": self._passes,
                "compiled": self._compiled,
                "failed": self._failed,
                "tracked_files": len(self.registry),
                "first_iteration": self._first_iteration,
                "recompile_pending": self.channel.recompile_requested,
            }
