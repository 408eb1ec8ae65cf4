#!/usr/bin/env python3
"""Check the integrity trailer of finished flash images."""
import argparse
from pathlib import Path

import trailer


def check_file(path: Path) -> bool:
    try:
        info = trailer.verify_image(path.read_bytes())
    except (OSError, trailer.FormatError) as err:
        print(f"{path}: FAIL {err}")
        return False
    print(f"{path}: OK body={info.split} sha256={info.digest.hex()} crc32=0x{info.crc:08x}")
    return True


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("images", metavar="IMAGE", nargs="+", help="Rewritten .bin image to check")
    args = ap.parse_args(argv)

    results = [check_file(Path(p)) for p in args.images]
    return 0 if all(results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
