"""
Build the static storefront into web/dist.

Usage:
    python scripts/build_site.py
    python scripts/build_site.py --out /tmp/site

Copies every file under web/ (except dist/) into the output directory,
replacing whatever was there. index.html must exist; CloudFront serves it
for the root and for every client-side route.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SOURCE_DIR = PROJECT_ROOT / "web"
DIST_NAME = "dist"
INDEX_DOCUMENT = "index.html"


def build_site(source: Path = SOURCE_DIR, out: Path | None = None) -> List[Path]:
    """Copy the site into ``out`` and return the written files."""
    out = out or source / DIST_NAME
    if not (source / INDEX_DOCUMENT).is_file():
        raise FileNotFoundError(f"{INDEX_DOCUMENT} not found in {source}")

    if out.exists():
        shutil.rmtree(out)
    out.mkdir(parents=True)

    written: List[Path] = []
    for f in sorted(source.rglob("*")):
        rel = f.relative_to(source)
        if rel.parts[0] == DIST_NAME or not f.is_file() or f.name.startswith("."):
            continue
        target = out / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(f, target)
        written.append(target)
    return written


def main():
    out = None
    if "--out" in sys.argv:
        i = sys.argv.index("--out")
        if i + 1 >= len(sys.argv):
            print("Usage: python scripts/build_site.py [--out <dir>]")
            sys.exit(1)
        out = Path(sys.argv[i + 1])

    try:
        written = build_site(out=out)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    for f in written:
        print(f"  {f}")
    print(f"\nBuilt {len(written)} file(s) into {out or SOURCE_DIR / DIST_NAME}")


if __name__ == "__main__":
    main()
