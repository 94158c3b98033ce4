"""Run the escrow specs under pytest, write fixtures, and optionally vectors.

    python tools/fill.py                       # fixtures/ only
    python tools/fill.py --vectors vectors     # fixtures/ then vectors/escrow/...
    python tools/fill.py -k claim              # only the claim specs
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "tools"))

from fixtures_to_vectors import convert_tree  # noqa: E402


def pytest_command(output: Path, keyword: Optional[str] = None) -> list[str]:
    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(ROOT / "tests"),
        "-q",
        "--output",
        str(output),
    ]
    if keyword:
        cmd += ["-k", keyword]
    return cmd


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate escrow fixtures (and vectors)")
    parser.add_argument(
        "--output",
        default=str(ROOT / "fixtures"),
        help="Fixture directory (default: ./fixtures)",
    )
    parser.add_argument(
        "--vectors",
        default=None,
        help="Also convert the fixtures into YAML vectors under this directory",
    )
    parser.add_argument(
        "-k",
        dest="keyword",
        default=None,
        help="Only run specs matching this pytest -k expression",
    )
    args = parser.parse_args(argv)

    output = Path(args.output)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = pytest_command(output, args.keyword)
    print("Running:", " ".join(cmd))
    rc = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if rc != 0:
        return rc
    if args.vectors:
        total = convert_tree(output, Path(args.vectors))
        print(f"Wrote {total} vectors to {args.vectors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
