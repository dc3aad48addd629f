"""Stack trace resolution: parse a trace and locate its frames locally.

The resolver ties together the language guesser, the parsers, the path
matcher and the position remapper. Each frame position recorded against the
commit the error happened on is carried forward through two diffs:

    sha --(git diff)--> HEAD --(HEAD content vs live buffer)--> buffer

Problems that only degrade the result are reported as a single warning per
call or as an error on the affected frame; only an unparseable trace makes
the whole call fail.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from trace_locator.core.language_guesser import guess_language
from trace_locator.core.parsers import get_parser, iter_parsers
from trace_locator.core.path_matcher import get_best_matching_path
from trace_locator.core.position_remapper import remap_through_diff, structured_patch
from trace_locator.models.results import ResolvePositionResult, ResolveStackTraceResult
from trace_locator.models.trace import ResolvedPosition, StackFrame, StructuredTrace
from trace_locator.utils.async_helpers import (
    RemapError,
    TraceParseError,
    UnresolvableTraceError,
)
from trace_locator.utils.logging import LogEventNames, bind_context, unbind_context
from trace_locator.utils.safe_subprocess import GitCliError
from trace_locator.utils.security import SecurityError

if TYPE_CHECKING:
    from trace_locator.interfaces.vcs import RepositoryMappings, VCSProvider
    from trace_locator.interfaces.workspace import DocumentStore, FileSearchProvider

log = structlog.get_logger()

RawStackTrace = str | Sequence[str]

MISSING_SHA_MESSAGE = (
    "Your version of the code doesn't match production. Fetch the following "
    "commit to better investigate the error.\n{sha}"
)
NO_SHA_MESSAGE = (
    "No build SHA associated with this error. Your version of the code may "
    "not match production."
)
REPO_NOT_FOUND_MESSAGE = (
    "Repo ({name}) not found in your editor. Open it in order to navigate the stack trace."
)
MISSING_SHA_FRAME_WARNING = "Missing sha"


def parse_stack_trace(stack_trace: RawStackTrace) -> StructuredTrace:
    """Parse a trace, guessing its language first.

    Args:
        stack_trace: Whole trace text or its individual lines.

    Returns:
        The structured trace. When the guessed language's parser rejects
        the text, the result carries ``parse_error`` instead of frames.

    Raises:
        UnresolvableTraceError: If the language could not be guessed and
            no parser accepts the text.
    """
    text = stack_trace if isinstance(stack_trace, str) else "\n".join(stack_trace)
    language = guess_language(text.split("\n"))

    if language is not None:
        try:
            return get_parser(language).parse(text)
        except TraceParseError as e:
            log.warning(LogEventNames.TRACE_PARSE_ERROR, language=str(language), error=str(e))
            return StructuredTrace(language=language, parse_error=str(e))

    for parser in iter_parsers():
        try:
            return parser.parse(text)
        except TraceParseError:
            log.debug(LogEventNames.PARSER_REJECTED_TRACE, language=str(parser.language))

    raise UnresolvableTraceError()


class WarningCollector:
    """Keeps the first warning raised during one resolution call."""

    def __init__(self) -> None:
        self.warning: str | None = None

    def add(self, message: str) -> None:
        if self.warning is None:
            self.warning = message

    def force(self, message: str) -> None:
        self.warning = message


class StackTraceResolver:
    """Parses stack traces and maps their frames onto the local workspace.

    Example:
        resolver = StackTraceResolver(vcs, mappings, file_index, documents)
        result = await resolver.resolve_stack_trace(lines, repo_id, sha, trace_id)
        for frame in result.resolved_stack_info.lines:
            print(frame.file_full_path, frame.line)
    """

    def __init__(
        self,
        vcs: VCSProvider,
        mappings: RepositoryMappings,
        file_search: FileSearchProvider,
        documents: DocumentStore,
    ) -> None:
        self._vcs = vcs
        self._mappings = mappings
        self._file_search = file_search
        self._documents = documents

    def parse_stack_trace(self, stack_trace: RawStackTrace) -> StructuredTrace:
        """Parse a trace; see the module level ``parse_stack_trace``."""
        return parse_stack_trace(stack_trace)

    async def resolve_stack_trace(
        self,
        stack_trace: RawStackTrace,
        repo_id: str,
        sha: str | None,
        trace_id: str | None = None,
    ) -> ResolveStackTraceResult:
        """Parse a trace and resolve every frame against the live workspace.

        Frames are resolved one at a time in trace order. Each resolved frame's
        relative path is written back onto the matching parsed frame.
        """
        bind_context(trace_id=trace_id, repo_id=repo_id)
        try:
            return await self._resolve_stack_trace(stack_trace, repo_id, sha, trace_id)
        finally:
            unbind_context("trace_id", "repo_id")

    async def _resolve_stack_trace(
        self,
        stack_trace: RawStackTrace,
        repo_id: str,
        sha: str | None,
        trace_id: str | None,
    ) -> ResolveStackTraceResult:
        warnings = WarningCollector()
        log.info(LogEventNames.RESOLUTION_START, has_sha=bool(sha))

        repo_path = await self._find_repo_path(repo_id)
        if repo_path is None:
            try:
                name = await self._vcs.get_repository_name(repo_id) or repo_id
            except (GitCliError, OSError):
                name = repo_id
            log.warning(LogEventNames.REPO_NOT_FOUND, repo_name=name)
            warnings.add(REPO_NOT_FOUND_MESSAGE.format(name=name))

        if not sha:
            log.info(LogEventNames.SHA_MISSING)
            warnings.add(NO_SHA_MESSAGE)
        elif repo_path is not None:
            await self._ensure_sha_available(repo_path, sha, warnings)

        try:
            parsed = self.parse_stack_trace(stack_trace)
        except UnresolvableTraceError as e:
            log.warning(LogEventNames.TRACE_PARSE_ERROR, error=str(e))
            return ResolveStackTraceResult(error=str(e))
        if parsed.parse_error:
            return ResolveStackTraceResult(error=parsed.parse_error)

        parsed.repo_id = repo_id
        parsed.sha = sha
        parsed.trace_id = trace_id
        resolved = replace(parsed, lines=[])

        for frame in parsed.lines:
            if not frame.is_resolvable or repo_path is None:
                resolved_frame = replace(frame, arguments=list(frame.arguments))
            else:
                resolved_frame = await self._resolve_line(frame, sha, repo_path)
            resolved.lines.append(resolved_frame)
            frame.file_relative_path = resolved_frame.file_relative_path

        if sha and resolved.lines and not resolved.resolvable_frames:
            log.warning(LogEventNames.ALL_FRAMES_FAILED, frames=len(resolved.lines))
            warnings.force(MISSING_SHA_MESSAGE.format(sha=sha))

        log.info(
            LogEventNames.RESOLUTION_COMPLETE,
            frames=len(resolved.lines),
            resolved_frames=len(resolved.resolvable_frames),
            warning=warnings.warning is not None,
        )
        return ResolveStackTraceResult(
            parsed_stack_info=parsed,
            resolved_stack_info=resolved,
            warning=warnings.warning,
        )

    async def resolve_stack_trace_position(
        self,
        sha: str | None,
        repo_id: str,
        file_path: str,
        line: int,
        column: int,
    ) -> ResolvePositionResult:
        """Resolve one position of a repository file to the live buffer.

        Args:
            sha: Commit the position refers to; empty means use it as is.
            repo_id: Repository identifier.
            file_path: Path relative to the repository root.
            line: Line at ``sha``.
            column: Column at ``sha``.
        """
        repo_path = await self._find_repo_path(repo_id)
        if repo_path is None:
            return ResolvePositionResult(error=f"Unable to find repo {repo_id}")

        full_path = os.path.join(repo_path, file_path)
        if not sha:
            return ResolvePositionResult(line=line, column=column, path=full_path)

        try:
            position = await self._get_current_position(sha, full_path, line, column)
        except RemapError as e:
            return ResolvePositionResult(error=str(e), path=full_path)

        log.debug(LogEventNames.POSITION_RESOLVED, line=position.line, column=position.column)
        return ResolvePositionResult(line=position.line, column=position.column, path=full_path)

    async def _find_repo_path(self, repo_id: str) -> str | None:
        try:
            repo_path = await self._vcs.get_repository_path(repo_id)
        except (GitCliError, OSError) as e:
            log.warning(LogEventNames.REPO_NOT_FOUND, stage="discovery", error=str(e))
            repo_path = None
        if repo_path:
            return repo_path

        mapped_path = await self._mappings.get_by_repo_id(repo_id)
        if mapped_path:
            log.debug(LogEventNames.REPO_MAPPED, repo_path=mapped_path)
            return mapped_path
        return None

    async def _ensure_sha_available(
        self, repo_path: str, sha: str, warnings: WarningCollector
    ) -> None:
        """Make sure ``sha`` exists locally, fetching remotes at most once."""
        try:
            if await self._vcs.is_valid_reference(repo_path, sha):
                return

            log.info(LogEventNames.SHA_NOT_FOUND_FETCHING, sha=sha)
            await self._vcs.fetch_all_remotes(repo_path)
            if not await self._vcs.is_valid_reference(repo_path, sha):
                log.warning(LogEventNames.SHA_NOT_FOUND_AFTER_FETCH, sha=sha)
                warnings.add(MISSING_SHA_MESSAGE.format(sha=sha))
        except Exception as e:
            log.warning(LogEventNames.SHA_CHECK_FAILED, sha=sha, repo_path=repo_path, error=str(e))
            warnings.add(MISSING_SHA_MESSAGE.format(sha=sha))

    async def _resolve_line(self, frame: StackFrame, sha: str | None, repo_path: str) -> StackFrame:
        recorded_path = frame.file_full_path or ""
        try:
            candidates = await self._file_search.search_files(recorded_path)
        except OSError as e:
            log.warning(LogEventNames.FRAME_UNRESOLVED, path=recorded_path, error=str(e))
            candidates = []
        match = get_best_matching_path(recorded_path, candidates)
        if match is None:
            log.debug(LogEventNames.FRAME_UNRESOLVED, path=recorded_path, reason="no_match")
            return StackFrame(error=f"Unable to find matching file for path {recorded_path}")

        relative_path = os.path.relpath(match, repo_path)
        if not sha:
            return StackFrame(
                file_full_path=match,
                file_relative_path=relative_path,
                line=frame.line or 0,
                column=frame.column or 0,
                warning=MISSING_SHA_FRAME_WARNING,
            )

        try:
            position = await self._get_current_position(
                sha, match, frame.line or 0, frame.column or 0
            )
        except RemapError as e:
            log.debug(LogEventNames.FRAME_UNRESOLVED, path=match, reason=str(e))
            return StackFrame(error=str(e))

        log.debug(LogEventNames.FRAME_RESOLVED, path=relative_path, line=position.line)
        return StackFrame(
            file_full_path=match,
            file_relative_path=relative_path,
            line=position.line,
            column=position.column,
        )

    async def _get_current_position(
        self, sha: str, file_path: str, line: int, column: int
    ) -> ResolvedPosition:
        """Carry a position at ``sha`` to HEAD and then to the live buffer.

        Raises:
            RemapError: With the message of the stage that failed.
        """
        try:
            diff_to_head = await self._vcs.get_diff_between_commits(
                sha, "HEAD", file_path, whole_file=True
            )
        except (GitCliError, SecurityError) as e:
            log.debug(LogEventNames.GIT_COMMAND_FAILED, stage="diff", error=str(e))
            diff_to_head = None
        if diff_to_head is None:
            raise RemapError(f"Unable to calculate diff from {sha} to HEAD")

        commit_position = remap_through_diff(ResolvedPosition(line, column), diff_to_head)

        try:
            head_text = await self._vcs.get_file_content_for_revision(file_path, "HEAD")
        except (GitCliError, SecurityError) as e:
            log.debug(LogEventNames.GIT_COMMAND_FAILED, stage="show", error=str(e))
            head_text = None
        if not head_text:
            raise RemapError(f"Unable to read current HEAD contents of {file_path}")

        buffer_text = await self._read_buffer_text(file_path)
        if not buffer_text:
            raise RemapError(f"Unable to read current buffer contents of {file_path}")

        return remap_through_diff(
            commit_position, structured_patch(head_text, buffer_text, file_path)
        )

    async def _read_buffer_text(self, file_path: str) -> str | None:
        """Open editor buffer first, file on disk otherwise."""
        text = self._documents.get_text("file://" + file_path)
        if text is not None:
            return text

        try:
            return await asyncio.to_thread(
                Path(file_path).read_text, encoding="utf-8", errors="replace"
            )
        except OSError as e:
            log.debug(LogEventNames.BUFFER_READ_FAILED, path=file_path, error=str(e))
            return None
