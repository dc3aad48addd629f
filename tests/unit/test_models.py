"""Tests for trace and result models."""

from trace_locator.models.results import ResolvePositionResult, ResolveStackTraceResult
from trace_locator.models.trace import Language, StackFrame, StructuredTrace


class TestStackFrame:
    """Test StackFrame model."""

    def test_resolvable(self) -> None:
        assert StackFrame(file_full_path="/a.js", line=1).is_resolvable
        assert not StackFrame(error="Unable to parse").is_resolvable

    def test_warning_does_not_block_resolution(self) -> None:
        assert StackFrame(file_full_path="/a.js", line=1, warning="Missing sha").is_resolvable

    def test_to_dict_uses_camel_case_and_omits_unset(self) -> None:
        frame = StackFrame(
            file_full_path="/srv/app/a.js",
            file_relative_path="a.js",
            method="render",
            line=12,
            column=0,
        )
        assert frame.to_dict() == {
            "fileFullPath": "/srv/app/a.js",
            "fileRelativePath": "a.js",
            "method": "render",
            "arguments": [],
            "line": 12,
            "column": 0,
        }


class TestStructuredTrace:
    """Test StructuredTrace model."""

    def test_resolvable_frames(self) -> None:
        trace = StructuredTrace(
            lines=[StackFrame(error="bad"), StackFrame(file_full_path="/a.js", line=3)]
        )
        assert trace.resolvable_frames == [trace.lines[1]]

    def test_to_dict(self) -> None:
        trace = StructuredTrace(
            header="TypeError: boom",
            message="boom",
            lines=[StackFrame(error="bad")],
            language=Language.CSHARP,
            repo_id="github.com/acme/shop",
            sha="abc1234",
        )
        assert trace.to_dict() == {
            "header": "TypeError: boom",
            "message": "boom",
            "lines": [{"arguments": [], "error": "bad"}],
            "language": "c#",
            "repoId": "github.com/acme/shop",
            "sha": "abc1234",
        }


class TestResults:
    """Test result objects."""

    def test_stack_trace_error_result(self) -> None:
        result = ResolveStackTraceResult(error="unable to parse")
        assert not result.ok
        assert result.to_dict() == {"error": "unable to parse"}

    def test_stack_trace_result_with_warning(self) -> None:
        parsed = StructuredTrace(header="Error")
        result = ResolveStackTraceResult(
            parsed_stack_info=parsed, resolved_stack_info=parsed, warning="Missing sha"
        )
        assert result.ok
        assert result.to_dict()["parsedStackInfo"] == {"header": "Error", "lines": []}
        assert result.to_dict()["warning"] == "Missing sha"

    def test_position_result(self) -> None:
        result = ResolvePositionResult(line=4, column=2, path="/repo/a.js")
        assert result.ok
        assert result.to_dict() == {"line": 4, "column": 2, "path": "/repo/a.js"}
