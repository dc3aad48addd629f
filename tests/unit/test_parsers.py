"""Tests for the per-language stack trace parsers."""

import pytest

from trace_locator.core.parsers import PARSERS, get_parser, iter_parsers
from trace_locator.core.parsers.base import normalize_path, split_arguments
from trace_locator.core.parsers.csharp import CSharpStackTraceParser
from trace_locator.core.parsers.go import GoStackTraceParser
from trace_locator.core.parsers.java import JavaStackTraceParser
from trace_locator.core.parsers.javascript import JavaScriptStackTraceParser
from trace_locator.core.parsers.php import PhpStackTraceParser
from trace_locator.core.parsers.python import PythonStackTraceParser
from trace_locator.core.parsers.ruby import RubyStackTraceParser
from trace_locator.models.trace import Language
from trace_locator.utils.async_helpers import TraceParseError


class TestRegistry:
    """Tests for the Language -> parser registry."""

    def test_every_language_registered(self) -> None:
        assert set(PARSERS) == set(Language)
        for language, parser in PARSERS.items():
            assert parser.language == language

    def test_iteration_follows_language_order(self) -> None:
        assert [parser.language for parser in iter_parsers()] == list(Language)
        assert list(Language)[0] == Language.JAVASCRIPT

    def test_get_parser(self) -> None:
        assert isinstance(get_parser(Language.GO), GoStackTraceParser)


class TestHelpers:
    """Tests for the shared parsing helpers."""

    def test_normalize_path(self) -> None:
        assert normalize_path("file:///srv/app.js") == "/srv/app.js"
        assert normalize_path(r"C:\src\App\Order.cs") == "C:/src/App/Order.cs"
        assert normalize_path("  /a/b.py ") == "/a/b.py"

    def test_split_arguments(self) -> None:
        assert split_arguments("") == []
        assert split_arguments("Array, 3") == ["Array", "3"]
        assert split_arguments("Object(App\\Job), f(a, b), [1, 2]") == [
            "Object(App\\Job)",
            "f(a, b)",
            "[1, 2]",
        ]


class TestCommonContract:
    """Properties every grammar upholds."""

    @pytest.mark.parametrize("parser", list(iter_parsers()), ids=lambda p: str(p.language))
    def test_empty_text_raises(self, parser) -> None:
        with pytest.raises(TraceParseError):
            parser.parse("   \n  ")

    @pytest.mark.parametrize("parser", list(iter_parsers()), ids=lambda p: str(p.language))
    def test_text_without_frames_raises(self, parser) -> None:
        with pytest.raises(TraceParseError):
            parser.parse("Something went wrong\nplease try again")

    @pytest.mark.parametrize(
        "parser,fixture",
        [
            (JavaScriptStackTraceParser(), "javascript_trace"),
            (RubyStackTraceParser(), "ruby_trace"),
            (PhpStackTraceParser(), "php_trace"),
            (PythonStackTraceParser(), "python_trace"),
            (CSharpStackTraceParser(), "csharp_trace"),
            (JavaStackTraceParser(), "java_trace"),
            (GoStackTraceParser(), "go_trace"),
        ],
        ids=lambda value: value if isinstance(value, str) else None,
    )
    def test_parsing_is_idempotent(self, parser, fixture: str, request) -> None:
        text = request.getfixturevalue(fixture)
        assert parser.parse(text) == parser.parse(text)

    def test_crlf_line_endings(self, python_trace: str) -> None:
        parser = PythonStackTraceParser()
        assert parser.parse(python_trace.replace("\n", "\r\n")) == parser.parse(python_trace)

    def test_frames_with_errors_keep_position_free(self, javascript_trace: str) -> None:
        trace = JavaScriptStackTraceParser().parse(javascript_trace)
        for frame in trace.lines:
            if frame.error:
                assert frame.line is None
            else:
                assert frame.file_full_path and frame.line is not None


class TestJavaScriptParser:
    """Tests for V8 and Gecko stack traces."""

    def test_fixture(self, javascript_trace: str) -> None:
        trace = JavaScriptStackTraceParser().parse(javascript_trace)

        assert trace.language == Language.JAVASCRIPT
        assert trace.header == "TypeError: Cannot read properties of undefined (reading 'id')"
        assert trace.message == "Cannot read properties of undefined (reading 'id')"
        assert len(trace.lines) == 5

        first = trace.lines[0]
        assert first.file_full_path == "/srv/api/modules/web/link_request.js"
        assert first.method == "LinkRequest.render"
        assert (first.line, first.column) == (39, 33)

        assert trace.lines[1].error is not None
        assert trace.lines[2].method == "Router"
        assert trace.lines[2].file_full_path == "/srv/api/lib/router.ts"

        anonymous = trace.lines[3]
        assert anonymous.method is None
        assert (anonymous.file_full_path, anonymous.line, anonymous.column) == (
            "/srv/api/lib/server.js",
            62,
            20,
        )

        native = trace.lines[4]
        assert native.file_full_path == "<anonymous>"
        assert native.method == "runMicrotasks"
        assert native.error is not None

    def test_two_line_trace(self) -> None:
        trace = JavaScriptStackTraceParser().parse("Error: x\n at foo (/repo/a.js:10:5)")
        assert trace.header == "Error: x"
        assert trace.message == "x"
        assert len(trace.lines) == 1
        assert (trace.lines[0].line, trace.lines[0].column) == (10, 5)

    def test_banner_line_starting_with_at(self) -> None:
        text = (
            "Error: validation failed\n"
            "at least one field is required\n"
            "    at foo (/repo/a.js:10:5)"
        )
        trace = JavaScriptStackTraceParser().parse(text)

        assert trace.header == "Error: validation failed\nat least one field is required"
        assert len(trace.lines) == 1
        assert trace.lines[0].file_full_path == "/repo/a.js"

    def test_unparseable_location_after_first_frame_is_kept(self) -> None:
        text = "Error: x\n    at foo (/repo/a.js:10:5)\n    at somewhere unknown"
        trace = JavaScriptStackTraceParser().parse(text)

        assert len(trace.lines) == 2
        assert trace.lines[1].error is not None

    def test_gecko_frames(self) -> None:
        text = "render@https://example.com/static/app.js:12:7\n@https://example.com/static/vendor.js:1:99"
        trace = JavaScriptStackTraceParser().parse(text)
        assert len(trace.lines) == 2
        assert trace.lines[0].method == "render"
        assert trace.lines[0].file_full_path == "https://example.com/static/app.js"
        assert trace.lines[1].method is None
        assert (trace.lines[1].line, trace.lines[1].column) == (1, 99)

    def test_eval_frame_uses_eval_site(self) -> None:
        text = "Error: e\n    at eval (eval at run (/srv/app/runner.js:5:9), <anonymous>:1:1)"
        frame = JavaScriptStackTraceParser().parse(text).lines[0]
        assert frame.file_full_path == "/srv/app/runner.js"
        assert (frame.line, frame.column) == (5, 9)

    def test_file_url_is_normalised(self) -> None:
        frame = JavaScriptStackTraceParser().parse("at f (file:///srv/app.mjs:3:4)").lines[0]
        assert frame.file_full_path == "/srv/app.mjs"


class TestRubyParser:
    """Tests for Ruby backtraces."""

    def test_fixture(self, ruby_trace: str) -> None:
        trace = RubyStackTraceParser().parse(ruby_trace)

        assert trace.header == "NoMethodError: undefined method `upcase' for nil"
        assert trace.message == "undefined method `upcase' for nil"
        assert [frame.line for frame in trace.lines] == [10, 5, 311, 4]
        assert trace.lines[0].file_full_path == "app/models/user.rb"
        assert trace.lines[0].method == "name"
        assert trace.lines[1].method == "show"
        assert trace.lines[3].method == "<main>"
        assert all(frame.column is None for frame in trace.lines)

    def test_banner_first_layout(self) -> None:
        text = (
            "NoMethodError: undefined method 'upcase' for nil\n"
            "app/models/user.rb:10:in 'User#name'\n"
            "app/controllers/users_controller.rb:5"
        )
        trace = RubyStackTraceParser().parse(text)
        assert trace.message == "undefined method 'upcase' for nil"
        assert trace.lines[0].method == "User#name"
        assert trace.lines[1].method is None
        assert trace.lines[1].line == 5

    def test_suffixed_banner_message(self) -> None:
        parser = RubyStackTraceParser()
        assert parser._extract_message("something failed (RuntimeError)") == "something failed"


class TestPhpParser:
    """Tests for PHP traces."""

    def test_fixture(self, php_trace: str) -> None:
        trace = PhpStackTraceParser().parse(php_trace)

        assert trace.message == "Boom"
        assert "Stack trace:" not in trace.header
        assert len(trace.lines) == 3

        located = trace.lines[0]
        assert located.file_full_path == "/var/www/src/Worker.php"
        assert located.line == 88
        assert located.method == "App\\Job->run"
        assert located.arguments == ["Array", "3"]

        internal = trace.lines[1]
        assert internal.error == "Internal function has no file location"
        assert internal.method == "App\\Worker->handle"

        assert trace.lines[2].error == "Script entry point has no file location"

    def test_unparseable_frame_is_kept(self) -> None:
        trace = PhpStackTraceParser().parse("Exception: x\n#0 garbage\n#1 {main}")
        assert len(trace.lines) == 2
        assert trace.lines[0].error == "Unable to parse stack frame: garbage"


class TestPythonParser:
    """Tests for Python tracebacks."""

    def test_fixture(self, python_trace: str) -> None:
        trace = PythonStackTraceParser().parse(python_trace)

        assert trace.header == "ValueError: Invalid value"
        assert trace.message == "Invalid value"
        assert [frame.method for frame in trace.lines] == ["main", "process_data", "parse_value"]
        assert [frame.line for frame in trace.lines] == [10, 25, 42]
        assert trace.lines[2].file_full_path == "/home/user/project/src/app/utils.py"

    def test_chained_keeps_all_frames_in_order(self, python_chained_trace: str) -> None:
        trace = PythonStackTraceParser().parse(python_chained_trace)

        assert trace.header == "DataLoadError: Failed to load data"
        assert [frame.line for frame in trace.lines] == [30, 20]

    def test_module_level_frame(self) -> None:
        text = 'Traceback (most recent call last):\n  File "/app/run.py", line 3\nKeyboardInterrupt'
        trace = PythonStackTraceParser().parse(text)
        assert trace.lines[0].method == "<module>"
        assert trace.header == "KeyboardInterrupt"
        assert trace.message is None


class TestCSharpParser:
    """Tests for .NET traces."""

    def test_fixture(self, csharp_trace: str) -> None:
        trace = CSharpStackTraceParser().parse(csharp_trace)

        assert trace.message == "Order already shipped"
        assert len(trace.lines) == 3

        first = trace.lines[0]
        assert first.method == "MyApp.Services.OrderService.Place"
        assert first.arguments == ["Order order", "Int32 qty"]
        assert first.file_full_path == "/src/MyApp/Services/OrderService.cs"
        assert first.line == 42

        assert trace.lines[2].method == "System.Threading.Tasks.Task.Execute"
        assert trace.lines[2].error == "No file information for stack frame"

    def test_windows_path(self) -> None:
        text = r"   at App.Run() in C:\src\App\Program.cs:line 7"
        frame = CSharpStackTraceParser().parse(text).lines[0]
        assert frame.file_full_path == "C:/src/App/Program.cs"
        assert frame.line == 7


class TestJavaParser:
    """Tests for JVM traces."""

    def test_fixture(self, java_trace: str) -> None:
        trace = JavaStackTraceParser().parse(java_trace)

        assert trace.message == "Cart is empty"
        assert len(trace.lines) == 5
        assert trace.lines[0].file_full_path == "com/example/orders/OrderService.java"
        assert trace.lines[0].method == "com.example.orders.OrderService.place"
        assert trace.lines[1].file_full_path == "com/example/orders/OrderController.kt"
        assert trace.lines[2].file_full_path == "java/lang/Thread.java"
        assert trace.lines[3].error == "No source location for stack frame: Native Method"
        assert trace.lines[4].line == 8

    def test_trailing_jar_info(self) -> None:
        text = "\tat org.app.Main.run(Main.java:3) ~[app.jar:1.0]"
        frame = JavaStackTraceParser().parse(text).lines[0]
        assert frame.file_full_path == "org/app/Main.java"
        assert frame.line == 3


class TestGoParser:
    """Tests for Go panics."""

    def test_fixture(self, go_trace: str) -> None:
        trace = GoStackTraceParser().parse(go_trace)

        assert trace.header == "panic: runtime error: integer divide by zero"
        assert trace.message == "runtime error: integer divide by zero"
        assert [frame.method for frame in trace.lines] == [
            "main.divide",
            "main.(*Server).Handle",
            "main.main",
        ]
        assert [frame.line for frame in trace.lines] == [12, 40, 8]
        assert trace.lines[0].arguments == ["0x1", "0x0"]
        assert trace.lines[1].file_full_path == "/home/dev/app/server.go"

    def test_function_without_location(self) -> None:
        text = "goroutine 7 [running]:\nmain.worker(0x1)\ncreated by main.start\n\t/app/main.go:20 +0x10"
        trace = GoStackTraceParser().parse(text)
        assert len(trace.lines) == 2
        assert trace.lines[0].error == "No source location for stack frame"
        assert trace.lines[1].method == "main.start"
        assert trace.lines[1].line == 20
