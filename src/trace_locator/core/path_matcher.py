"""Suffix matching of recorded file paths against workspace files.

A path recorded by a production build rarely equals the developer's local
path (containers, build directories, other operating systems). Paths are
compared segment by segment from the file name towards the root, so the
match degrades gracefully from a full suffix match to a file-name-only
match.
"""

from collections.abc import Iterable


def _segment(parts: list[str], index: int) -> str | None:
    return parts[index] if index < len(parts) else None


def get_best_matching_path(path_suffix: str, candidates: Iterable[str]) -> str | None:
    """Return the candidate sharing the longest trailing segment run.

    Args:
        path_suffix: Path as recorded in the stack trace, ``/`` separated.
        candidates: Absolute paths of files known to exist locally.

    Returns:
        The best candidate, unchanged, or None when no candidate shares even
        the file name.
    """
    suffix_parts = path_suffix.split("/")[::-1]
    best_path: str | None = None
    best_score = -1
    best_depth = 0

    for candidate in candidates:
        candidate_parts = candidate.split("/")[::-1]

        partial_match = False
        for i, suffix_part in enumerate(suffix_parts):
            candidate_part = _segment(candidate_parts, i)
            if suffix_part == candidate_part:
                partial_match = True
            if suffix_part != candidate_part or i == len(suffix_parts) - 1:
                # Depth tie-break compares the index to the stored segment count
                if partial_match and (
                    i > best_score
                    or (i == best_depth and len(candidate_parts) < best_depth)
                ):
                    best_score = i
                    best_path = candidate
                    best_depth = len(candidate_parts)
                break

    return best_path
