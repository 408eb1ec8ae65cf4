#!/usr/bin/env python3
"""Convert an ELF file into a binary image compatible with `particle flash`.

The raw loadable bytes are extracted with objcopy, then the magic trailer at the
end of the image is replaced by its SHA-256 digest and CRC-32.
"""
import argparse
import os
import subprocess
import sys
import tempfile
from importlib import metadata
from pathlib import Path

import trailer

try:
    __version__ = metadata.version("elf2bin")
except metadata.PackageNotFoundError:
    # running from a source checkout
    __version__ = "unknown"

DEFAULT_OBJCOPY = "arm-none-eabi-objcopy"


class Elf2BinError(RuntimeError):
    pass


def run(cmd):
    try:
        r = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except OSError as err:
        raise Elf2BinError(f"couldn't run `{cmd[0]}`") from err
    if r.returncode != 0:
        raise Elf2BinError(f"`{cmd[0]}` error:\n{r.stderr}")
    return r.stdout


def objcopy(path, tool=DEFAULT_OBJCOPY) -> bytes:
    with tempfile.TemporaryDirectory(prefix="elf2bin") as td:
        tmpfile = os.path.join(td, "output")
        run([tool, "-O", "binary", str(path), tmpfile])
        try:
            return Path(tmpfile).read_bytes()
        except OSError as err:
            raise Elf2BinError(f"error reading {tmpfile}") from err


def write_image(path: Path, blob: bytes):
    try:
        f = path.open("wb")
    except OSError as err:
        raise Elf2BinError(f"couldn't create file {path}") from err
    with f:
        try:
            f.write(blob)
        except OSError as err:
            raise Elf2BinError(f"couldn't write to file {path}") from err


def report(err: BaseException):
    print(f"error: {err}", file=sys.stderr)
    cause = err.__cause__
    while cause is not None:
        print(f"caused by: {cause}", file=sys.stderr)
        cause = cause.__cause__


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Converts ELF files into binary files compatible with `particle flash`")
    ap.add_argument("input", metavar="INPUT", help="ELF file to convert")
    ap.add_argument("-o", "--output", help="Output path (default: <INPUT name>.bin in the current directory)")
    ap.add_argument("--objcopy", default=DEFAULT_OBJCOPY, help="objcopy executable to extract the raw image with")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = ap.parse_args(argv)

    in_path = Path(args.input)

    try:
        if args.output:
            out_path = Path(args.output)
        elif in_path.name in ("", ".."):
            raise Elf2BinError("input is not a file")
        else:
            out_path = Path(in_path.name).with_suffix(".bin")
        pre_crc = objcopy(in_path, args.objcopy)
        post_crc = trailer.checksum(pre_crc)
        write_image(out_path, post_crc)
    except (Elf2BinError, trailer.FormatError) as err:
        report(err)
        return 1

    print(f"Wrote: {out_path}")
    print(f"Image size: {len(post_crc)} bytes")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
