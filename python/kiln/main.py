#!/usr/bin/env python3
"""
Kiln - declarative ID3 tagging.

Usage:
    kiln list "music/album/*.mp3"
    kiln set tags.kiln [options]
"""

import argparse
import sys
from typing import List, Optional

from kiln.config import eprint, load_config, setup_logging, validate_config
from kiln.diff import diff_files, has_changes
from kiln.errors import (
    ConfigError, KilnError, SpecFileError, StoreWriteError, render_error
)
from kiln.images import ImageEncoder
from kiln.interactive import InteractivePrompts
from kiln.listing import TagLister
from kiln.merge import SectionMerger
from kiln.models import FileDiff, RunStats, TagId
from kiln.parser import SpecParser
from kiln.resolver import FileResolver
from kiln.tag_store import ID3TagStore


class TagProcessor:
    """Runs the list and set commands."""

    def __init__(self, config: dict, args: argparse.Namespace,
                 prompts: InteractivePrompts, store=None):
        """
        Initialize processor.

        Args:
            config: Configuration dictionary
            args: CLI arguments
            prompts: Interactive prompts handler
            store: Tag store; defaults to ID3TagStore
        """
        self.config = config
        self.args = args
        self.prompts = prompts
        self.stats = RunStats()

        self.resolver = FileResolver(config["audio_extensions"])
        self.store = store or ID3TagStore()
        self.image_encoder = ImageEncoder(config["image_format"],
                                          config["image_quality"])

    def list_tags(self, pattern: str) -> List[str]:
        """Return the spec-syntax listing for a pattern."""
        lister = TagLister(self.resolver, self.store,
                           no_comments=self.args.no_comments,
                           force_empty=self.args.force_empty)
        return lister.render(pattern)

    def plan(self, content: str) -> List[FileDiff]:
        """
        Parse spec text and compute the diff for every matched file.

        Nothing is written here; any error aborts before the commit step.
        """
        strict = self.config["strict_parse"]
        if getattr(self.args, "strict", None) is not None:
            strict = self.args.strict
        parser = SpecParser(self.image_encoder.load, strict=strict)
        sections = parser.parse(content)

        merged = SectionMerger(self.resolver).merge(sections)
        self.stats.overrides = len(merged.overrides)

        preserve = getattr(self.args, "preserve", None) or []
        workers = getattr(self.args, "workers", None) or self.config["workers"]
        file_diffs = diff_files(merged.desired, self.store, preserve, workers)

        for file_diff in file_diffs:
            self.stats.count_diff(file_diff)
        return file_diffs

    def set_tags(self, spec_path: str) -> bool:
        """
        Apply a spec file.

        Returns:
            True if files were written
        """
        try:
            with open(spec_path, "r", encoding="utf-8-sig") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SpecFileError(spec_path, str(e)) from e

        file_diffs = self.plan(content)
        self.prompts.show_diffs(file_diffs)

        if not has_changes(file_diffs):
            self.prompts.print("No changes to make to any files, exiting...")
            return False

        if self.args.dry_run:
            self.prompts.print("Dry run: no changes written.")
            self.prompts.show_summary(self.stats)
            return False

        if self.args.ask and not self.prompts.confirm_changes():
            self.prompts.print("No changes will be made to files. Exiting...")
            return False

        self.prompts.print("Making changes to files...")
        self.commit(file_diffs)
        self.prompts.show_summary(self.stats)
        return True

    def commit(self, file_diffs: List[FileDiff]) -> None:
        """
        Write each changed file in order.

        Raises:
            StoreWriteError: on the first failure, listing files already written.
                The summary is shown before it is raised.
        """
        written = []
        for file_diff in file_diffs:
            if not file_diff.has_changes:
                continue
            self.prompts.show_write(file_diff.file_path)
            try:
                self.store.write(file_diff.file_path, file_diff.ops)
            except StoreWriteError as e:
                self.stats.errors.append(str(e))
                self.prompts.show_summary(self.stats)
                raise StoreWriteError(e.file_path, e.reason, written) from e
            written.append(file_diff.file_path)
            self.stats.files_written += 1


def parse_preserve(value: str) -> List[TagId]:
    """argparse type for --preserve: comma separated frame ids or labels."""
    tags = []
    for token in value.split(","):
        if not token.strip():
            continue
        try:
            tags.append(TagId.parse_loose(token))
        except KilnError as e:
            raise argparse.ArgumentTypeError(str(e)) from e
    return tags


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="kiln",
        description="An id3 tag utility for the command line.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the tags of an album as an editable spec
  kiln list "music/album/*.mp3" > album.kiln

  # Apply a spec, asking first
  kiln set album.kiln --ask

  # Keep comments and covers that the spec file does not mention
  kiln set album.kiln --preserve COMM,APIC
"""
    )

    # Shared options
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: ./.env)"
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-essential output"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser(
        "list", help="List tags for all selected files"
    )
    list_parser.add_argument(
        "glob",
        nargs="?",
        default="./*",
        help="Glob string to select files (default: ./*)"
    )
    list_parser.add_argument(
        "--no-comments", "-c",
        action="store_true",
        help="Turn off comments in the output"
    )
    list_parser.add_argument(
        "--force-empty", "-f",
        action="store_true",
        help="Force listing files with no tags"
    )

    set_parser = subparsers.add_parser(
        "set", help="Set tags given an input file"
    )
    set_parser.add_argument(
        "input_file",
        help="Spec file to read tags from"
    )
    set_parser.add_argument(
        "--ask", "-a",
        action="store_true",
        help="Ask for confirmation before writing tags to files"
    )
    set_parser.add_argument(
        "--preserve", "-p",
        type=parse_preserve,
        default=[],
        help="Comma separated tags that are never deleted, e.g. COMM,APIC"
    )
    set_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show changes without writing them"
    )
    set_parser.add_argument(
        "--workers",
        type=int,
        help="Number of files read in parallel (default: KILN_WORKERS or 4)"
    )
    strictness = set_parser.add_mutually_exclusive_group()
    strictness.add_argument(
        "--strict",
        dest="strict",
        action="store_true",
        default=None,
        help="Fail on any line that cannot be parsed (default)"
    )
    strictness.add_argument(
        "--lenient",
        dest="strict",
        action="store_false",
        help="Warn about unparsed trailing input instead of failing"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "workers", None) is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    setup_logging(args.verbose)
    prompts = InteractivePrompts(no_color=args.no_color, quiet=args.quiet)

    try:
        config = load_config(args.env_file)
        problems = validate_config(config)
        if problems:
            raise ConfigError(problems)

        processor = TagProcessor(config, args, prompts)
        if args.command == "list":
            for line in processor.list_tags(args.glob):
                print(line)
        else:
            processor.set_tags(args.input_file)
    except KilnError as e:
        eprint(render_error(e))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
