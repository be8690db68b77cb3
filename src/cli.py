"""Command-line interface for MemoryInk.

Provides the ``memoryink`` entry point with one subcommand per
workflow:

- ``extract``: print the note embedded in one image
- ``batch``:   extract notes from every image in a directory
- ``verify``:  report whether an image carries a note (exit status 0/1)
- ``embed``:   write a plaintext or password-protected note
- ``strip``:   remove the note, keeping all other metadata
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path

from batch import BatchConfig, BatchRunner
from cipher import decrypt_note
from cleaner import remove_note
from config import CodecConfig
from constants import ENV_PASSWORD, SUPPORTED_FORMATS, __version__
from errors import MemoryInkError
from extractor import extract_report, get_note_summary
from injector import embed_note
from report import format_batch, format_report, format_summary, info, success, warning
from secure_note import embed_encrypted_note
from utils import get_image_info

logger = logging.getLogger(__name__)

_FORMATS = ("text", "json")


# ── Argument parser construction ────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="memoryink",
        description="Embed and extract notes stored in JPEG and PNG image metadata.",
        epilog=(
            "Examples:\n"
            "  memoryink embed photo.jpg \"Summer 2023\" -o tagged.jpg\n"
            "  memoryink extract tagged.jpg -f json\n"
            "  memoryink batch ./photos -r -o notes.json -f json"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log progress and show image details",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── extract ─────────────────────────────────────────────────
    extract = subparsers.add_parser("extract", help="Extract the note from a single image")
    extract.add_argument(
        "image", type=Path,
        help=f"Image file (formats: {', '.join(sorted(SUPPORTED_FORMATS))})",
    )
    _add_output_options(extract)
    extract.add_argument(
        "--password",
        help=f"Decrypt an encrypted note (falls back to ${ENV_PASSWORD})",
    )

    # ── batch ───────────────────────────────────────────────────
    batch = subparsers.add_parser("batch", help="Extract notes from every image in a directory")
    batch.add_argument("directory", type=Path, help="Directory containing images")
    batch.add_argument(
        "-r", "--recursive", action="store_true",
        help="Search subdirectories recursively",
    )
    _add_output_options(batch)
    batch.add_argument(
        "--workers", type=int, default=1,
        help="Number of worker threads. Default: 1",
    )
    batch.add_argument(
        "--fail-fast", action="store_true",
        help="Stop at the first image that cannot be read",
    )

    # ── verify ──────────────────────────────────────────────────
    verify = subparsers.add_parser(
        "verify", help="Check whether an image contains a MemoryInk note",
    )
    verify.add_argument("image", type=Path, help="Image file")
    _add_output_options(verify)

    # ── embed ───────────────────────────────────────────────────
    embed = subparsers.add_parser("embed", help="Embed a note into an image")
    embed.add_argument("image", type=Path, help="Image file to embed into")
    embed.add_argument("note", help="Note text, or '-' to read it from stdin")
    embed.add_argument(
        "-o", "--output", type=Path,
        help="Output file path (default: <name>_embedded.<ext> next to the image)",
    )
    embed.add_argument(
        "--encrypt", action="store_true",
        help="Encrypt the note with a password before embedding",
    )
    embed.add_argument(
        "--password",
        help=f"Password for --encrypt (falls back to ${ENV_PASSWORD})",
    )
    embed.add_argument(
        "--digest", action="store_true",
        help="Store a SHA-256 digest of the note with the ciphertext",
    )
    embed.add_argument(
        "--legacy-artist", action="store_true",
        help="Also record the encrypted flag in the EXIF Artist tag (JPEG only)",
    )

    # ── strip ───────────────────────────────────────────────────
    strip = subparsers.add_parser("strip", help="Remove the note from an image")
    strip.add_argument("image", type=Path, help="Image file")
    strip.add_argument(
        "-o", "--output", type=Path,
        help="Output file path (default: overwrite the image)",
    )

    return parser


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f", "--format", choices=_FORMATS, default="text",
        help="Output format. Default: text",
    )
    parser.add_argument(
        "-o", "--output", type=Path,
        help="Write output to a file instead of the console",
    )


# ── Helpers ─────────────────────────────────────────────────────────

def _emit(text: str, output: Path | None) -> None:
    """Print *text*, or write it to *output*."""
    if output is None:
        print(text, end="" if text.endswith("\n") else "\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
    print(success(f"Output written to: {output}"), file=sys.stderr)


def _password(args: argparse.Namespace) -> str | None:
    return args.password or os.environ.get(ENV_PASSWORD) or None


def _require_file(path: Path) -> bool:
    if not path.is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return False
    return True


# ── Command handlers ────────────────────────────────────────────────

def _handle_extract(args: argparse.Namespace, config: CodecConfig) -> int:
    """Print the note embedded in one image."""
    if not _require_file(args.image):
        return 1
    logger.info("Extracting note from: %s", args.image)

    report = extract_report(args.image)
    password = _password(args)
    if password and report["isEncrypted"] and report["note"] is not None:
        report["note"] = decrypt_note(
            report["note"], password, iterations=config.pbkdf2_iterations
        )
        report["decrypted"] = True

    _emit(format_report(report, args.format), args.output)
    return 0


def _handle_batch(args: argparse.Namespace, config: CodecConfig) -> int:
    """Extract notes from every image under a directory."""
    if not args.directory.is_dir():
        print(f"Error: Directory not found: {args.directory}", file=sys.stderr)
        return 1

    batch_config = BatchConfig(
        recursive=args.recursive, fail_fast=args.fail_fast, workers=args.workers
    )
    with BatchRunner(batch_config) as runner:
        items = runner.run(args.directory)

    _emit(format_batch([item.to_dict() for item in items], args.format), args.output)
    failed = sum(1 for item in items if not item.ok)
    summary = f"Processed {len(items)} image(s)"
    if failed:
        summary += f", {failed} could not be read"
    print(info(summary), file=sys.stderr)
    return 0


def _handle_verify(args: argparse.Namespace, config: CodecConfig) -> int:
    """Report whether an image carries a note; exit status 0 if it does."""
    if not _require_file(args.image):
        return 1

    summary = get_note_summary(args.image)
    image_info = get_image_info(args.image.read_bytes()) if args.verbose else None
    _emit(format_summary(summary, args.format, image_info), args.output)
    return 0 if summary["found"] else 1


def _handle_embed(args: argparse.Namespace, config: CodecConfig) -> int:
    """Embed a plaintext or encrypted note."""
    if not _require_file(args.image):
        return 1

    note = sys.stdin.read() if args.note == "-" else args.note
    if args.legacy_artist:
        config = dataclasses.replace(config, legacy_artist_marker=True)

    if args.encrypt:
        password = _password(args)
        if not password:
            print(
                f"Error: --encrypt needs --password or ${ENV_PASSWORD}.", file=sys.stderr
            )
            return 1
        output_path = embed_encrypted_note(
            args.image, note, password,
            output=args.output, include_digest=args.digest, config=config,
        )
    else:
        if args.digest or args.password:
            print(warning("Warning: --password/--digest only apply with --encrypt."), file=sys.stderr)
        output_path = embed_note(args.image, note, output=args.output, config=config)

    kind = "encrypted note" if args.encrypt else "note"
    print(success(f"Successfully embedded {kind} into: {output_path}"))
    return 0


def _handle_strip(args: argparse.Namespace, config: CodecConfig) -> int:
    """Remove the note from an image."""
    if not _require_file(args.image):
        return 1
    output_path = remove_note(args.image, output=args.output)
    print(success(f"Successfully removed note from: {output_path}"))
    return 0


_HANDLERS = {
    "extract": _handle_extract,
    "batch": _handle_batch,
    "verify": _handle_verify,
    "embed": _handle_embed,
    "strip": _handle_strip,
}


# ── Entry point ─────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch to the appropriate command handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = CodecConfig.from_env()
        return _HANDLERS[args.command](args, config)
    except (MemoryInkError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
