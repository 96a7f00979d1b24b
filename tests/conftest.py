import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from nexa_launch.config import build_config  # noqa: E402
from nexa_launch.core.process import CommandResult, ProcessRunner  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "launch: end-to-end launch pipeline tests")
    config.addinivalue_line("markers", "cli: command line tests")


class RecordingRunner(ProcessRunner):
    """Stand-in for ProcessRunner that records commands instead of running them."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, ...]] = []
        self.cwds: List[Optional[Path]] = []
        self._rules: List[Tuple[Tuple[str, ...], int, str]] = []

    def fail_when(self, *tokens: str, returncode: int = 1, output: str = "boom") -> None:
        """Commands containing every token in ``tokens`` return ``returncode``."""
        self._rules.append((tokens, returncode, output))

    def run(self, command: Sequence[str], *, cwd=None, env=None) -> CommandResult:
        cmd = tuple(command)
        self.calls.append(cmd)
        self.cwds.append(cwd)
        for tokens, returncode, output in self._rules:
            if all(token in cmd for token in tokens):
                return CommandResult(command=cmd, returncode=returncode, output=output)
        return CommandResult(command=cmd, returncode=0, output=f"ran {cmd[0]}")

    def programs(self) -> List[str]:
        return [call[0] for call in self.calls]

    def matching(self, *tokens: str) -> List[Tuple[str, ...]]:
        return [call for call in self.calls if all(token in call for token in tokens)]


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def workdir(tmp_path) -> Path:
    return tmp_path / "work"


@pytest.fixture
def make_config(tmp_path, workdir):
    """Build a LaunchConfig rooted in tmp_path with optional overrides."""

    def _make(**payload):
        base = {
            "working_dir": str(workdir),
            "output_dir": "out",
            "username": "trainer",
            "credential": {"local_dir": str(tmp_path / "ssh")},
            "blocks": [
                {"name": "base", "lines": ["A=1"]},
                {"name": "override", "lines": ["B=2"]},
            ],
        }
        base.update(payload)
        return build_config(base)

    return _make
