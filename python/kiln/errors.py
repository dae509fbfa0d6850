"""Error types for Kiln and the single function that renders them."""

from typing import List, Optional, Sequence


class KilnError(Exception):
    """Base error for every failure Kiln reports to the user."""


class SpecSyntaxError(KilnError):
    """A spec line matched neither a section header nor an assignment."""

    def __init__(self, fragment: str, line: Optional[int] = None,
                 reason: str = "unrecognized line"):
        self.fragment = fragment
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {fragment!r}")


class UnknownIdentifierError(KilnError):
    """An assignment used an identifier outside the supported tag set."""

    def __init__(self, token: str, line: Optional[int] = None):
        self.token = token
        self.line = line
        super().__init__(f"{token!r} is not a valid id3 tag for kiln")


class ImageLoadError(KilnError):
    """A cover image path could not be opened, decoded or re-encoded."""

    def __init__(self, path: str, reason: str, line: Optional[int] = None):
        self.path = path
        self.reason = reason
        self.line = line
        super().__init__(f"bad image {path}: {reason}")


class StoreReadError(KilnError):
    """Tags could not be read from an audio file."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"cannot read tags from {file_path}: {reason}")


class StoreWriteError(KilnError):
    """Tags could not be written to an audio file."""

    def __init__(self, file_path: str, reason: str,
                 written: Sequence[str] = ()):
        self.file_path = file_path
        self.reason = reason
        # Files committed before this failure; they are not rolled back.
        self.written = list(written)
        super().__init__(f"cannot write tags to {file_path}: {reason}")


class ResolverError(KilnError):
    """A section header could not be expanded into files."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"bad pattern {pattern!r}: {reason}")


class SpecFileError(KilnError):
    """The spec file itself could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read spec file {path}: {reason}")


class ConfigError(KilnError):
    """Configuration values failed validation."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


def _at_line(line: Optional[int]) -> str:
    return f" (line {line})" if line is not None else ""


def render_error(err: KilnError) -> str:
    """
    Render any Kiln error as a one-paragraph message for the console.

    Args:
        err: Error raised anywhere in a run

    Returns:
        Human-readable message including positional context when known.
    """
    if isinstance(err, SpecSyntaxError):
        return f"Syntax error{_at_line(err.line)}: {err.reason}: {err.fragment}"
    if isinstance(err, UnknownIdentifierError):
        return (f"Unknown tag{_at_line(err.line)}: {err.token!r} "
                "is not a valid id3 tag for kiln")
    if isinstance(err, ImageLoadError):
        return f"Bad image{_at_line(err.line)}: {err.path} ({err.reason})"
    if isinstance(err, StoreReadError):
        return f"Read error: {err.file_path} ({err.reason})"
    if isinstance(err, StoreWriteError):
        message = f"Write error: {err.file_path} ({err.reason})"
        if err.written:
            message += (f"\n{len(err.written)} file(s) were already written "
                        "and keep their new tags:")
            message += "".join(f"\n  - {path}" for path in err.written)
        return message
    if isinstance(err, ResolverError):
        return f"Pattern error: {err.pattern!r} ({err.reason})"
    if isinstance(err, SpecFileError):
        return f"Spec file error: {err.path} ({err.reason})"
    if isinstance(err, ConfigError):
        return "Invalid configuration:" + "".join(
            f"\n  - {problem}" for problem in err.problems
        )
    return f"Error: {err}"
