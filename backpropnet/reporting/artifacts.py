"""Run manifest: what was trained, on which data, with which code."""

from __future__ import annotations

import hashlib
import json
import platform
import subprocess
import time
from pathlib import Path
from typing import Dict, Mapping

import numpy as np
import pandas as pd


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - outside a checkout
        return "unknown"
    return out.decode().strip()


def dataset_fingerprint(path: str | Path) -> Dict[str, object]:
    """Path, byte size and sha256 of a dataset file, or just the path if unreadable."""

    path = Path(path)
    if not path.is_file():
        return {"path": str(path)}
    digest = hashlib.sha256(path.read_bytes()).hexdigest()
    return {"path": str(path), "bytes": path.stat().st_size, "sha256": digest}


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
) -> str:
    """Write ``manifest.json`` next to the run summary and return its path.

    ``config`` should carry the resolved seed so a clock-seeded run can be
    repeated exactly.
    """

    from .. import __version__

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "backpropnet": __version__,
        "git_sha": _git_sha(),
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": dict(config),
        "dataset": dict(dataset_provenance),
        "versions": {
            "python": platform.python_version(),
            "numpy": np.__version__,
            "pandas": pd.__version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2, sort_keys=True, default=str))
    return str(path)


__all__ = ["dataset_fingerprint", "write_manifest"]
