"""
NoteCrypt command-line decryptor.

Usage::

    notecrypt INPUT [-m] [PASSPHRASE] [-o OUTPUT] [-v]

Prints the plaintext to standard output unless ``-o`` is given. The
passphrase is prompted for when omitted.
"""

from __future__ import annotations

import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Optional, Sequence

import notecrypt

logger = logging.getLogger(__name__)


def eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="notecrypt",
        description="Decrypt a file written by NotepadCrypt.",
    )
    p.add_argument("input", help="Encrypted input file.")
    p.add_argument(
        "-m",
        "--master-key",
        action="store_true",
        help="Use the master key (only applicable for files with a master key).",
    )
    p.add_argument(
        "passphrase",
        nargs="?",
        default=None,
        help="Passphrase, or master passphrase with -m (prompted for if omitted).",
    )
    p.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write plaintext to this file instead of standard output.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    # intermixed so "INPUT -m PASSPHRASE" works like the original tool
    args = parser.parse_intermixed_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    passphrase = args.passphrase
    if passphrase is None:
        prompt = "Master passphrase: " if args.master_key else "Passphrase: "
        passphrase = getpass(prompt)

    input_path = Path(args.input)
    try:
        if args.output is not None:
            notecrypt.decrypt_file(input_path, args.output, passphrase, args.master_key)
            return 0
        data = input_path.read_bytes()
        plaintext = notecrypt.decrypt_data(data, passphrase, args.master_key)
    except notecrypt.NoteCryptError as ex:
        logger.debug("Decryption of %s failed", input_path, exc_info=True)
        eprint(f"Error: {ex}")
        return 1
    except OSError as ex:
        eprint(f"Error: {ex}")
        return 1

    sys.stdout.buffer.write(plaintext)
    sys.stdout.buffer.flush()
    return 0


def run() -> None:
    """Console-script entry point."""
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        eprint("Interrupted.")
        raise SystemExit(130)


if __name__ == "__main__":
    run()
