"""
layer_publisher.pipeline.builder - Artifact Builder
=====================================================

Invokes the external toolchain once per architecture and hands back an
ArtifactBundle.

Build Flow (per architecture):
    1. Render the command template ({package}, {target}).
    2. Run it in the workspace (worker thread; may take minutes).
    3. Check the exit status and that the fixed output zip exists.
    4. Move the zip to an architecture-qualified path so the next build
       cannot overwrite it.

Builds are serialized with a lock: the toolchain shares one workspace and
one output path, so two builds at once would corrupt each other.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
from pathlib import Path
from typing import Callable, Optional

import structlog

from layer_publisher.core.config import BuildConfig
from layer_publisher.core.enums import Architecture
from layer_publisher.core.exceptions import BuildError
from layer_publisher.core.models import ArtifactBundle


logger = structlog.get_logger()

# Toolchain output kept in a BuildError (tail end, where the error usually is).
MAX_DIAGNOSTICS_CHARS = 4000

ToolchainRunner = Callable[[list[str], Path, Optional[float]], subprocess.CompletedProcess]


def run_toolchain(
    command: list[str],
    cwd: Path,
    timeout: Optional[float],
) -> subprocess.CompletedProcess:
    """Run the toolchain command, capturing its output."""
    return subprocess.run(
        command,
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )


def _tail(output: object) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    text = str(output).strip()
    return text[-MAX_DIAGNOSTICS_CHARS:]


class ArtifactBuilder:
    """Builds one extension bundle per architecture.

    Args:
        config: Toolchain settings (command template, package, paths).
        runner: Callable that executes the command. Defaults to
            ``run_toolchain`` (subprocess); tests inject a fake.

    Example:
        >>> builder = ArtifactBuilder(BuildConfig())
        >>> bundle = await builder.build(Architecture.ARM64)
        >>> bundle.path
        PosixPath('target/lambda/extensions/optimeist-extension-arm64.zip')
    """

    def __init__(
        self,
        config: BuildConfig,
        runner: Optional[ToolchainRunner] = None,
    ) -> None:
        self._config = config
        self._runner = runner or run_toolchain
        self._lock = asyncio.Lock()
        self._logger = logger.bind(component="artifact_builder")

    def command_for(self, architecture: Architecture) -> list[str]:
        """The rendered toolchain command for ``architecture``."""
        return [
            token.replace("{package}", self._config.package).replace(
                "{target}", architecture.target_triple
            )
            for token in self._config.command
        ]

    async def build(self, architecture: Architecture) -> ArtifactBundle:
        """Build the bundle for one architecture.

        Args:
            architecture: The architecture to build for.

        Returns:
            The bundle at its architecture-qualified path.

        Raises:
            BuildError: If the toolchain is missing, times out, exits
                non-zero, produces no output, or the output cannot be moved.
        """
        async with self._lock:
            command = self.command_for(architecture)
            self._logger.info(
                "build_starting",
                architecture=architecture.value,
                target=architecture.target_triple,
                command=" ".join(command),
            )

            try:
                completed = await asyncio.to_thread(
                    self._runner,
                    command,
                    self._config.workspace,
                    self._config.timeout_seconds,
                )
            except FileNotFoundError as exc:
                raise BuildError(
                    message=f"Toolchain command not found: {command[0]}",
                    architecture=architecture.value,
                    diagnostics=str(exc),
                    error_code="TOOLCHAIN_MISSING",
                ) from exc
            except subprocess.TimeoutExpired as exc:
                raise BuildError(
                    message=(
                        f"Build for {architecture.value} exceeded "
                        f"{self._config.timeout_seconds}s"
                    ),
                    architecture=architecture.value,
                    diagnostics=_tail(exc.stderr) or _tail(exc.stdout),
                    error_code="TOOLCHAIN_TIMEOUT",
                ) from exc

            if completed.returncode != 0:
                raise BuildError(
                    message=(
                        f"Build for {architecture.value} failed with exit code "
                        f"{completed.returncode}"
                    ),
                    architecture=architecture.value,
                    diagnostics=_tail(completed.stderr) or _tail(completed.stdout),
                    error_code="TOOLCHAIN_EXIT_NONZERO",
                    details={"exit_code": completed.returncode},
                )

            output = self._config.output_path()
            if not output.is_file():
                raise BuildError(
                    message=f"Build for {architecture.value} produced no bundle at {output}",
                    architecture=architecture.value,
                    diagnostics=_tail(completed.stdout),
                    error_code="BUILD_OUTPUT_MISSING",
                    details={"expected_path": str(output)},
                )

            target = self._config.bundle_path(architecture)
            try:
                os.replace(output, target)
            except OSError as exc:
                raise BuildError(
                    message=f"Could not move bundle to {target}: {exc}",
                    architecture=architecture.value,
                    error_code="BUNDLE_RENAME_FAILED",
                    details={"source": str(output), "target": str(target)},
                ) from exc

            self._logger.info(
                "build_completed",
                architecture=architecture.value,
                bundle=str(target),
                size_bytes=target.stat().st_size,
            )
            return ArtifactBundle(architecture=architecture, path=target)
