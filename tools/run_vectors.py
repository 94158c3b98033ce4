#!/usr/bin/env python3
"""
Escrow vector runner.

Executes YAML vector suites against the Python escrow model and reports
per-vector PASS/FAIL plus a JSON report and a text summary.

A vector either carries a serialized `pre_state` (as produced by
fixtures_to_vectors.py) or a `deploy` block describing a fresh deal on the
funded test ledger, optionally with token `approvals` to grant first.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.deploy import DeployConfig  # noqa: E402
from escrow_spec.errors import SpecError  # noqa: E402
from escrow_spec.ledger import token_approve  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import apply_calls, create_deal  # noqa: E402
from escrow_spec.test_accounts import funded_ledger, resolve  # noqa: E402
from escrow_spec.types import Call, EscrowState, Operation  # noqa: E402
from fixtures_io import state_from_json, state_to_json  # noqa: E402

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Settings for a vector run."""
    vector_dir: str = str(ROOT / "vectors")
    result_dir: str = str(ROOT / "results")
    verbose: bool = False
    stop_on_first_failure: bool = False

    @classmethod
    def from_env(cls) -> "RunConfig":
        """Load configuration from environment variables."""
        config = cls()
        config.vector_dir = os.environ.get("ESCROW_VECTOR_DIR", config.vector_dir)
        config.result_dir = os.environ.get("ESCROW_RESULT_DIR", config.result_dir)
        config.verbose = os.environ.get("VERBOSE", "").lower() in ("true", "1", "yes")
        config.stop_on_first_failure = os.environ.get(
            "STOP_ON_FIRST_FAILURE", ""
        ).lower() in ("true", "1", "yes")
        return config


@dataclass
class VectorResult:
    """Result of a single vector."""
    vector_name: str
    suite_name: str
    passed: bool
    execution_time_ms: float
    divergences: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SuiteResult:
    """Result of a vector suite (one YAML file)."""
    suite_name: str
    total_tests: int
    passed_tests: int
    failed_tests: int
    skipped_tests: int
    execution_time_ms: float
    test_results: List[VectorResult]

    @property
    def pass_rate(self) -> float:
        if self.total_tests == 0:
            return 0.0
        return self.passed_tests / self.total_tests * 100


def _resolve_deploy(data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    for key in ("seller", "buyer", "arbitrator", "token"):
        if out.get(key):
            out[key] = resolve(str(out[key])).hex()
    return out


def build_pre_state(vector: Dict[str, Any]) -> EscrowState:
    if "pre_state" in vector:
        return state_from_json(vector["pre_state"])

    config = DeployConfig.from_mapping(_resolve_deploy(vector["deploy"]))
    state = create_deal(
        config.seller,
        config.buyer,
        config.arbitrator,
        config.price,
        config.token,
        funded_ledger(),
        config.salt,
    )
    for approval in vector.get("approvals", []):
        token_approve(
            state.ledger,
            resolve(str(approval["token"])),
            resolve(str(approval["owner"])),
            state.deal.address,
            int(approval["amount"]),
        )
    return state


def build_call(data: Dict[str, Any]) -> Call:
    return Call(
        sender=resolve(str(data["sender"])),
        op=Operation(data["op"]),
        value=int(data.get("value", 0)),
    )


def run_vector(vector: Dict[str, Any], suite_name: str = "") -> VectorResult:
    """Run a single vector and compare against its expectations."""
    vector_name = vector.get("name", "unknown")
    start_time = time.time()

    try:
        pre_state = build_pre_state(vector)
        calls = [build_call(c) for c in vector.get("calls", [])]
    except (SpecError, KeyError, ValueError) as e:
        return VectorResult(
            vector_name=vector_name,
            suite_name=suite_name,
            passed=False,
            execution_time_ms=(time.time() - start_time) * 1000,
            error=f"invalid vector: {e}",
        )

    post_state, result = apply_calls(pre_state, calls)
    expected = vector.get("expected", {})
    divergences: List[str] = []

    if "ok" in expected and result.ok != expected["ok"]:
        divergences.append(f"ok: expected {expected['ok']}, got {result.ok}")

    actual_err = result.error.code.name if result.error else None
    if "error" in expected and actual_err != expected["error"]:
        divergences.append(f"error: expected {expected['error']}, got {actual_err}")

    if "phase" in expected and int(post_state.deal.phase) != int(expected["phase"]):
        divergences.append(
            f"phase: expected {expected['phase']}, got {int(post_state.deal.phase)}"
        )

    if "state_digest" in expected:
        digest = compute_state_digest(state_to_json(post_state))
        if digest != expected["state_digest"]:
            divergences.append("state_digest mismatch")

    return VectorResult(
        vector_name=vector_name,
        suite_name=suite_name,
        passed=not divergences,
        execution_time_ms=(time.time() - start_time) * 1000,
        divergences=divergences,
        error=str(result.error) if result.error else None,
    )


def run_suite(suite_path: str, config: RunConfig) -> SuiteResult:
    """Run a vector suite from a YAML file."""
    suite_name = Path(suite_path).stem
    logger.info(f"Running suite: {suite_name}")

    start_time = time.time()

    with open(suite_path) as f:
        suite = yaml.safe_load(f) or {}

    vectors = suite.get("test_vectors", [])
    test_results = []

    for vector in vectors:
        result = run_vector(vector, suite_name)
        test_results.append(result)

        status = "PASS" if result.passed else "FAIL"
        logger.info(f"  [{status}] {result.vector_name}")
        for div in result.divergences:
            logger.debug(f"      {div}")

        if not result.passed and config.stop_on_first_failure:
            break

    passed = sum(1 for r in test_results if r.passed)
    failed = sum(1 for r in test_results if not r.passed)

    return SuiteResult(
        suite_name=suite_name,
        total_tests=len(test_results),
        passed_tests=passed,
        failed_tests=failed,
        skipped_tests=len(vectors) - len(test_results),
        execution_time_ms=(time.time() - start_time) * 1000,
        test_results=test_results,
    )


def find_vector_files(vector_dir: str) -> List[str]:
    """Find all vector YAML files in directory."""
    patterns = [
        os.path.join(vector_dir, "**", "*.yaml"),
        os.path.join(vector_dir, "**", "*.yml"),
    ]

    files = []
    for pattern in patterns:
        files.extend(glob.glob(pattern, recursive=True))

    return sorted(files)


def write_report(suites: List[SuiteResult], result_dir: str) -> str:
    """Write a JSON report and a text summary; return the summary text."""
    os.makedirs(result_dir, exist_ok=True)
    total = sum(s.total_tests for s in suites)
    passed = sum(s.passed_tests for s in suites)

    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_suites": len(suites),
        "total_tests": total,
        "total_passed": passed,
        "total_failed": total - passed,
        "suite_results": [asdict(s) for s in suites],
    }
    with open(os.path.join(result_dir, "vector-report.json"), "w") as f:
        json.dump(report, f, indent=2)

    lines = [
        "=" * 60,
        "Escrow Vector Report",
        "=" * 60,
        f"  Total Tests:  {total}",
        f"  Passed:       {passed}",
        f"  Failed:       {total - passed}",
        f"  Pass Rate:    {passed / max(total, 1) * 100:.1f}%",
        "",
        "Suite Results:",
    ]
    for suite in suites:
        status = "PASS" if suite.failed_tests == 0 else "FAIL"
        lines.append(
            f"  [{status}] {suite.suite_name}: "
            f"{suite.passed_tests}/{suite.total_tests} "
            f"({suite.pass_rate:.1f}%)"
        )
        for r in suite.test_results:
            if not r.passed:
                lines.append(f"    - {r.vector_name}: {'; '.join(r.divergences) or r.error}")
    lines.append("=" * 60)

    summary = "\n".join(lines)
    with open(os.path.join(result_dir, "vector-summary.txt"), "w") as f:
        f.write(summary + "\n")
    return summary


@click.command()
@click.option(
    "--vectors",
    default=None,
    help="Path to vectors directory or specific YAML file",
)
@click.option(
    "--result-dir",
    default=None,
    help="Directory to write results",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--stop-on-failure",
    is_flag=True,
    help="Stop on first failing vector",
)
def main(
    vectors: Optional[str],
    result_dir: Optional[str],
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run escrow vectors against the Python model."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    # Load config from environment, then override with CLI args
    config = RunConfig.from_env()

    if result_dir:
        config.result_dir = result_dir
    if verbose:
        config.verbose = True
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if stop_on_failure:
        config.stop_on_first_failure = True

    vector_dir = vectors or config.vector_dir
    if os.path.isfile(vector_dir):
        vector_files = [vector_dir]
    else:
        vector_files = find_vector_files(vector_dir)

    if not vector_files:
        logger.error(f"No vector files found in {vector_dir}")
        sys.exit(1)

    logger.info(f"Found {len(vector_files)} vector files")

    suites = []
    for path in vector_files:
        suite = run_suite(path, config)
        suites.append(suite)
        if suite.failed_tests and config.stop_on_first_failure:
            break

    click.echo(write_report(suites, config.result_dir))
    sys.exit(0 if all(s.failed_tests == 0 for s in suites) else 1)


if __name__ == "__main__":
    main()
