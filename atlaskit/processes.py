"""Starting binaries, building Go packages and running Docker containers for tests."""

from __future__ import annotations

import os
import subprocess
from typing import Callable, Sequence


def run_binary(path: str, *args: str) -> Callable[[], int]:
    """Start the binary at path with args; return a function that stops it and gives its exit status."""
    proc = subprocess.Popen([os.path.abspath(path), *args])

    def stop() -> int:
        if proc.poll() is None:
            proc.kill()
        return proc.wait()

    return stop


def _run_combined(command: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(command), stdout=subprocess.PIPE, stderr=subprocess.STDOUT)


def _output(result: subprocess.CompletedProcess) -> str:
    out = result.stdout or b""
    return out.decode(errors="replace") if isinstance(out, bytes) else str(out)


def build_go_source(package_path: str, output: str) -> Callable[[], None]:
    """Build a Go package into output; return a function that removes the binary."""
    result = _run_combined(["go", "build", "-o", output, package_path])
    if result.returncode != 0:
        raise RuntimeError(
            f"unable to build package: exit status {result.returncode} ({_output(result)})"
        )

    def remove() -> None:
        os.remove(output)

    return remove


def run_container(
    image: str, docker_args: Sequence[str], runtime_args: Sequence[str]
) -> Callable[[], None]:
    """Run a detached container; return a function that kills it."""
    command = ["docker", "run", "-d", *docker_args, image, *runtime_args]
    result = _run_combined(command)
    out = _output(result)
    if result.returncode != 0:
        raise RuntimeError(f"exit status {result.returncode}: {out}")
    container_id = out.split("\n")[0]

    def kill() -> None:
        killed = subprocess.run(["docker", "kill", container_id])
        if killed.returncode != 0:
            raise RuntimeError(f"exit status {killed.returncode}")

    return kill