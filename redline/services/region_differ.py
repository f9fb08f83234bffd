"""Line-based diff pre-pass that groups changes into regions.

Regions carry the old and new text of a contiguous change plus a few lines
of unchanged context, so each one can be analysed on its own.
"""

import difflib
import logging
import re

from redline.schemas.domain import ChangeRegion

logger = logging.getLogger(__name__)

ELLIPSIS_LINE = "...\n"

_WHITESPACE_RE = re.compile(r"\s+")


class _RegionBuilder:
    """Accumulates the two sides of the region currently being built."""

    def __init__(self) -> None:
        self.old: list[str] = []
        self.new: list[str] = []
        self.has_removed = False
        self.has_added = False

    @property
    def has_changes(self) -> bool:
        return self.has_removed or self.has_added

    def add_context(self, lines: list[str]) -> None:
        self.old.extend(lines)
        self.new.extend(lines)

    def add_removed(self, lines: list[str]) -> None:
        self.old.extend(lines)
        self.has_removed = True

    def add_added(self, lines: list[str]) -> None:
        self.new.extend(lines)
        self.has_added = True

    def build(self, index: int) -> ChangeRegion:
        return ChangeRegion(
            index=index,
            old_text="".join(self.old),
            new_text="".join(self.new),
            has_removed=self.has_removed,
            has_added=self.has_added,
        )


def _terminated(lines: list[str]) -> list[str]:
    # Head context is followed by other lines, so each must end with a newline
    return [line if line.endswith("\n") else line + "\n" for line in lines]


def identify_change_regions(
    old_text: str,
    new_text: str,
    context_break_lines: int = 5,
    context_lines: int = 2,
) -> list[ChangeRegion]:
    """Compute the change regions between two document texts.

    Args:
        old_text: Full text of the earlier version.
        new_text: Full text of the later version.
        context_break_lines: Unchanged runs longer than this close the open region.
        context_lines: Context lines kept at each end of a long unchanged run.

    Returns:
        Regions in document order. Every region holds at least one added or
        removed line.
    """
    old_lines = (old_text or "").splitlines(keepends=True)
    new_lines = (new_text or "").splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    regions: list[ChangeRegion] = []
    current = _RegionBuilder()

    def emit() -> None:
        nonlocal current
        if current.has_changes and (current.old or current.new):
            regions.append(current.build(len(regions)))
        current = _RegionBuilder()

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            lines = old_lines[i1:i2]
            head = _terminated(lines[:context_lines])
            tail = lines[-context_lines:] if context_lines else []

            if current.has_changes and len(lines) > context_break_lines:
                current.add_context(head)
                emit()
                current.add_context(tail)
            elif len(lines) <= context_lines * 2:
                current.add_context(lines)
            elif current.has_changes:
                current.add_context(head + [ELLIPSIS_LINE] + tail)
            else:
                # Long run before any change: keep only leading context
                current = _RegionBuilder()
                current.add_context(tail)
            continue

        if tag in ("replace", "delete"):
            current.add_removed(old_lines[i1:i2])
        if tag in ("replace", "insert"):
            current.add_added(new_lines[j1:j2])

    emit()

    logger.info("Text diff identified %d changed regions", len(regions))
    return regions


def normalize_text(text: str) -> str:
    """Collapse whitespace runs, trim, and lower-case."""
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def is_formatting_change_only(old_text: str, new_text: str) -> bool:
    return normalize_text(old_text) == normalize_text(new_text)


def is_substantive(region: ChangeRegion) -> bool:
    """Whether a region changes anything beyond whitespace or case."""
    return not is_formatting_change_only(region.old_text, region.new_text)


def filter_substantive(regions: list[ChangeRegion]) -> list[ChangeRegion]:
    """Drop formatting-only regions, keeping document order."""
    kept = [region for region in regions if is_substantive(region)]
    logger.info(
        "Formatting filter kept %d of %d regions",
        len(kept),
        len(regions),
    )
    return kept
