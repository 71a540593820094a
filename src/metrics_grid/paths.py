from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class OutputPaths:
    root: Path
    reports: Path
    exports: Path
    payloads: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    paths = OutputPaths(
        root=out_dir,
        reports=out_dir / "reports",
        exports=out_dir / "exports",
        payloads=out_dir / "payloads",
    )
    for path in (paths.root, paths.reports, paths.exports, paths.payloads):
        path.mkdir(parents=True, exist_ok=True)
    return paths
