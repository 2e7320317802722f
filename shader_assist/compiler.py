"""
External SPIR-V compiler invocation.

One compile decision becomes exactly one compiler process. Two
toolchains are supported:
- glslangValidator (Khronos reference compiler): ``-V <src> -o <out>``
- glslc (Google, supports #include): ``<src> -o <out>``

Compiler output is discarded; only the exit status is reported.
"""
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ShaderAssistConfig
from .logging_config import log_event

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Outcome of one compiler invocation."""
    path: Path
    output_path: Path
    command: List[str]
    returncode: Optional[int]
    duration_ms: float = 0.0
    error: Optional[str] = None
    metadata_ok: Optional[bool] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "output_path": str(self.output_path),
            "command": self.command_line,
            "returncode": self.returncode,
            "success": self.success,
            "duration_ms": round(self.duration_ms, 1),
            "error": self.error,
            "metadata_ok": self.metadata_ok,
            "timestamp": self.timestamp,
        }


class CompileDispatcher:
    """
    Builds and runs compiler commands for shader sources.

    Example:
        >>> dispatcher = CompileDispatcher(config)
        >>> dispatcher.ensure_output_dir()
        >>> result = dispatcher.compile(Path("shaders/basic.vert"))
        >>> result.success
        True
    """

    def __init__(self, config: ShaderAssistConfig):
        self.config = config

    @property
    def output_dir(self) -> Path:
        return Path(self.config.spirv_output_path)

    def ensure_output_dir(self) -> Path:
        """Create the SPIR-V output directory if it does not exist."""
        out = self.output_dir.absolute()
        if not out.is_dir():
            os.makedirs(out, exist_ok=True)
            logger.info(f"Created output directory {out}")
        return out

    def output_path_for(self, source: Path) -> Path:
        """``<output_dir>/<stem><ext><spirv_ext>``"""
        return self.output_dir / f"{source.name}{self.config.spirv_ext}"

    def build_command(self, source: Path) -> List[str]:
        output = str(self.output_path_for(source))
        if self.config.use_google_spirv:
            return [self.config.glslc_path, str(source), "-o", output]
        return [self.config.glslang_validator_path, "-V", str(source), "-o", output]

    def build_metadata_command(self, output: Path) -> List[str]:
        return [
            self.config.spirv_cross_path,
            str(output),
            "--reflect",
            "--output",
            f"{output}.json",
        ]

    def compile(self, source: Path) -> CompileResult:
        """
        Run the compiler for one source file.

        Never raises for compiler failures: a non-zero exit or a missing
        executable is reported through the returned CompileResult.
        """
        command = self.build_command(source)
        output = self.output_path_for(source)
        logger.debug(f"Running: {' '.join(command)}")

        start = time.perf_counter()
        returncode, error = _run_quiet(command)
        duration_ms = (time.perf_counter() - start) * 1000

        result = CompileResult(
            path=source,
            output_path=output,
            command=command,
            returncode=returncode,
            duration_ms=duration_ms,
            error=error,
        )

        if result.success:
            log_event(
                logger,
                logging.INFO,
                f"Compiled {source.name} -> {output.name}",
                event_type="compile_ok",
                subsystem="compiler",
                shader=source.name,
                latency_ms=duration_ms,
            )
            if self.config.generate_metadata:
                result.metadata_ok = self._generate_metadata(output)
        else:
            reason = error or f"exit code {returncode}"
            log_event(
                logger,
                logging.WARNING,
                f"Compile failed for {source.name} ({reason}): {result.command_line}",
                event_type="compile_failed",
                subsystem="compiler",
                shader=source.name,
                latency_ms=duration_ms,
                returncode=returncode,
            )
        return result

    def _generate_metadata(self, output: Path) -> bool:
        command = self.build_metadata_command(output)
        returncode, error = _run_quiet(command)
        if returncode == 0:
            logger.debug(f"Wrote reflection metadata {output.name}.json")
            return True
        logger.warning(
            f"Metadata generation failed for {output.name}: {error or f'exit code {returncode}'}"
        )
        return False


def _run_quiet(command: List[str]) -> tuple[Optional[int], Optional[str]]:
    """Run a command with its output suppressed. Returns (returncode, launch error)."""
    try:
        proc = subprocess.run(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        return None, str(e)
    return proc.returncode, None
