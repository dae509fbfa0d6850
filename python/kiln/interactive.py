"""Console rendering of diffs and user confirmation."""

from typing import List

from kiln.models import Add, Delete, DiffOp, FileDiff, Modify, RunStats


class InteractivePrompts:
    """Handles user interaction and confirmations."""

    COLORS = {
        "reset": "\033[0m",
        "bold": "\033[1m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "red": "\033[91m",
        "cyan": "\033[96m",
        "dim": "\033[2m",
    }

    def __init__(self, no_color: bool = False, quiet: bool = False):
        """
        Initialize interactive prompts.

        Args:
            no_color: Disable colored output
            quiet: Suppress non-essential output
        """
        self.no_color = no_color
        self.quiet = quiet

        if no_color:
            self.COLORS = {k: "" for k in self.COLORS}

    def _c(self, color: str, text: str) -> str:
        """Apply color to text."""
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def print(self, *args, **kwargs):
        """Print unless quiet mode."""
        if not self.quiet:
            print(*args, **kwargs)

    def _op_line(self, color: str, letter: str, text: str) -> str:
        c = self.COLORS
        return f"{c[color]}{c['bold']}{letter}{c['reset']}{c[color]} {text}{c['reset']}"

    def format_op(self, op: DiffOp) -> str:
        """Render one operation as a colored A/M/D line."""
        if isinstance(op, Add):
            return self._op_line("green", "A", str(op.new))
        if isinstance(op, Delete):
            return self._op_line("red", "D", str(op.old))
        if isinstance(op, Modify):
            return self._op_line("yellow", "M", f"{op.old} -> {op.new}")
        raise TypeError(f"not a diff operation: {op!r}")

    def show_file_diff(self, file_diff: FileDiff) -> None:
        """Display the operations for one file under its path."""
        print(f"[{file_diff.file_path}]")
        for op in file_diff.ops:
            print(self.format_op(op))
        print()

    def show_diffs(self, file_diffs: List[FileDiff]) -> None:
        """Display every file that has changes; unchanged files are skipped."""
        for file_diff in file_diffs:
            if file_diff.has_changes:
                self.show_file_diff(file_diff)

    def confirm_changes(self) -> bool:
        """
        Ask before writing.

        Returns:
            True for 'y', 'yes' or an empty answer; anything else is no.
        """
        choice = input(
            self._c("bold", "Allow the above changes to be written to files? [Y/n] ")
        ).strip().lower()
        return choice in ("y", "yes", "")

    def show_write(self, file_path: str) -> None:
        self.print(f"Writing changes to file {file_path} ...")

    def show_summary(self, stats: RunStats) -> None:
        """Display final run summary."""
        if self.quiet:
            return

        print(f"\n{self._c('bold', '=' * 60)}")
        print(f"{self._c('bold', 'Summary')}")
        print("=" * 60)

        print(f"Files examined:      {stats.total_files}")
        print(f"Files changed:       {stats.files_changed}")
        print(f"Files unchanged:     {stats.files_unchanged}")
        print(f"Tags added:          {self._c('green', str(stats.adds))}")
        print(f"Tags modified:       {self._c('yellow', str(stats.modifies))}")
        print(f"Tags deleted:        {self._c('red', str(stats.deletes))}")
        print(f"Files written:       {stats.files_written}")
        if stats.overrides:
            print(f"Section overrides:   {stats.overrides}")

        if stats.errors:
            print(f"\n{self._c('red', 'Errors:')}")
            for error in stats.errors[:10]:  # Limit displayed errors
                print(f"  - {error}")
            if len(stats.errors) > 10:
                print(f"  ... and {len(stats.errors) - 10} more errors")
