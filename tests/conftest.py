"""Pytest hooks to generate escrow fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from escrow_spec.state_transition import TransitionResult, apply_calls
from escrow_spec.types import Call, EscrowState
from tools.fixtures_io import call_to_json, state_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}

StateTestGroup = Callable[
    [str, str, EscrowState, list[Call]], tuple[EscrowState, TransitionResult]
]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


@pytest.fixture
def state_test_group() -> StateTestGroup:
    """Run a call sequence, collect it as a fixture case, return the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: EscrowState, calls: list[Call]
    ) -> tuple[EscrowState, TransitionResult]:
        post_state, result = apply_calls(pre_state, calls)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": state_to_json(pre_state),
                "calls": [call_to_json(c) for c in calls],
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "post_state": state_to_json(post_state),
                },
            }
        )
        return post_state, result

    return _state_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))
