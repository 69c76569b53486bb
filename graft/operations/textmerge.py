"""Line-level three-way text merge.

This is the default content-merge collaborator used by the merge engine:
a pure function of (base, ours, theirs) that returns either cleanly merged
text or text carrying conflict markers.
"""

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import List, Optional, Tuple

MARKER_OURS = '<<<<<<<'
MARKER_SEPARATOR = '======='
MARKER_THEIRS = '>>>>>>>'


@dataclass
class TextMergeResult:
    """Outcome of merging one file's content."""
    content: bytes
    conflicted: bool


def _decode(content: Optional[bytes]) -> Optional[List[str]]:
    if content is None:
        return []
    if b'\0' in content:
        return None
    try:
        return content.decode('utf-8').splitlines(keepends=True)
    except UnicodeDecodeError:
        return None


def _sync_regions(base: List[str], ours: List[str], theirs: List[str]) -> List[Tuple[int, int, int, int]]:
    """
    Regions of base that are unchanged on both sides.

    Returns:
        (base_start, base_end, ours_start, theirs_start) tuples, ending with
        an empty sentinel region at the end of all three texts
    """
    ours_blocks = SequenceMatcher(None, base, ours, autojunk=False).get_matching_blocks()
    theirs_blocks = SequenceMatcher(None, base, theirs, autojunk=False).get_matching_blocks()

    regions = []
    i = j = 0
    while i < len(ours_blocks) and j < len(theirs_blocks):
        a_base, a_match, a_len = ours_blocks[i]
        b_base, b_match, b_len = theirs_blocks[j]

        start = max(a_base, b_base)
        end = min(a_base + a_len, b_base + b_len)
        if start < end:
            regions.append((start, end, a_match + start - a_base, b_match + start - b_base))

        if a_base + a_len < b_base + b_len:
            i += 1
        else:
            j += 1

    regions.append((len(base), len(base), len(ours), len(theirs)))
    return regions


def _terminated(lines: List[str]) -> List[str]:
    if lines and not lines[-1].endswith('\n'):
        return lines[:-1] + [lines[-1] + '\n']
    return lines


def merge3(
    base: Optional[bytes],
    ours: Optional[bytes],
    theirs: Optional[bytes],
    ours_label: str = 'ours',
    theirs_label: str = 'theirs'
) -> Optional[TextMergeResult]:
    """
    Merge two descendants of a common text.

    Hunks changed on one side only are taken from that side; hunks changed
    identically on both sides are taken once; hunks changed differently
    are wrapped in conflict markers.

    Args:
        base: Common ancestor content (None when both sides added the file)
        ours: Our content
        theirs: Their content
        ours_label: Label after the opening marker
        theirs_label: Label after the closing marker

    Returns:
        TextMergeResult, or None if any input is binary
    """
    base_lines = _decode(base)
    ours_lines = _decode(ours)
    theirs_lines = _decode(theirs)
    if base_lines is None or ours_lines is None or theirs_lines is None:
        return None

    merged: List[str] = []
    conflicted = False
    base_pos = ours_pos = theirs_pos = 0

    for base_start, base_end, ours_start, theirs_start in _sync_regions(base_lines, ours_lines, theirs_lines):
        base_chunk = base_lines[base_pos:base_start]
        ours_chunk = ours_lines[ours_pos:ours_start]
        theirs_chunk = theirs_lines[theirs_pos:theirs_start]

        if ours_chunk == theirs_chunk:
            merged.extend(ours_chunk)
        elif ours_chunk == base_chunk:
            merged.extend(theirs_chunk)
        elif theirs_chunk == base_chunk:
            merged.extend(ours_chunk)
        else:
            conflicted = True
            merged.append(f"{MARKER_OURS} {ours_label}\n")
            merged.extend(_terminated(ours_chunk))
            merged.append(f"{MARKER_SEPARATOR}\n")
            merged.extend(_terminated(theirs_chunk))
            merged.append(f"{MARKER_THEIRS} {theirs_label}\n")

        length = base_end - base_start
        merged.extend(base_lines[base_start:base_end])
        base_pos = base_end
        ours_pos = ours_start + length
        theirs_pos = theirs_start + length

    return TextMergeResult(''.join(merged).encode('utf-8'), conflicted)
