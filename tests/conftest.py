from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, Iterator, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

TRACE_LOGGERS = ("minipas.semantic", "minipas.evaluator")


@pytest.fixture(autouse=True)
def _reset_trace_loggers() -> Iterator[None]:
    """The CLI and REPL flip logger levels; keep tests independent of order."""
    saved = {name: logging.getLogger(name).level for name in TRACE_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def program_file(tmp_path: Path):
    """Write Pascal source to a temp file and return its path as a string."""

    def _write(source: str, name: str = "prog.pas") -> str:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)

    return _write


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if pytest ever generates duplicate node IDs."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        nodeid = item.nodeid
        if nodeid in seen:
            duplicates.append(nodeid)
            continue
        seen[nodeid] = 1

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
    raise pytest.UsageError(
        "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
    )
