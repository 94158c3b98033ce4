#!/usr/bin/env python3
"""Convert escrow fixtures into runnable YAML vectors.

Each fixture case becomes a vector carrying the pre-state, the call sequence
and the expected outcome, with the post-state condensed to its phase and
digest. Output mirrors the fixture tree: fixtures/escrow/x.json becomes
vectors/escrow/x.yaml.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from escrow_spec.state_digest import compute_state_digest  # noqa: E402


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case["expected"]
    post_state = expected["post_state"]
    return {
        "name": case["name"],
        "pre_state": case["pre_state"],
        "calls": case["calls"],
        "expected": {
            "ok": expected["ok"],
            "error": expected["error"],
            "phase": post_state["deal"]["phase"],
            "state_digest": compute_state_digest(post_state),
        },
    }


def dump_vectors(vectors: list[dict[str, Any]]) -> str:
    # Leaf mappings (calls, balances, events, expected) stay on one line, like
    # the hand-written scenario suites.
    return yaml.safe_dump(
        {"test_vectors": vectors},
        sort_keys=False,
        width=4096,
        default_flow_style=None,
    )


def convert_file(src: Path, dst: Path) -> int:
    data = json.loads(src.read_text())
    vectors = [case_to_vector(c) for c in data.get("cases", [])]
    if not vectors:
        return 0
    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text(dump_vectors(vectors))
    return len(vectors)


def convert_tree(fixtures: Path, vectors: Path) -> int:
    """Convert every fixture file under `fixtures`; return the vector count."""
    total = 0
    for src in sorted(fixtures.rglob("*.json")):
        dst = vectors / src.relative_to(fixtures).with_suffix(".yaml")
        count = convert_file(src, dst)
        if count:
            print(f"{src.relative_to(fixtures)} -> {dst.relative_to(vectors)} ({count})")
        total += count
    return total


def main() -> int:
    parser = argparse.ArgumentParser(description="Convert escrow fixtures to YAML vectors")
    parser.add_argument(
        "--fixtures",
        default=str(ROOT / "fixtures"),
        help="Fixture directory (default: ./fixtures)",
    )
    parser.add_argument(
        "--vectors",
        default=str(ROOT / "vectors"),
        help="Output directory (default: ./vectors)",
    )
    args = parser.parse_args()

    fixtures = Path(args.fixtures)
    if not fixtures.exists():
        print(f"Missing fixtures directory: {fixtures}")
        return 1

    total = convert_tree(fixtures, Path(args.vectors))
    print(f"Wrote {total} vectors")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
