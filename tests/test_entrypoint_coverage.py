from __future__ import annotations

import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

# We import the entrypoint script specifically to test it
import lox
import lox_lang


class EntrypointCoverageTests(unittest.TestCase):
    def _write(self, directory: str, name: str, source: str) -> str:
        path = os.path.join(directory, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(source)
        return path

    def _main(self, argv: list[str]) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = lox.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_main_runs_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "ok.lox", "print 1 + 2;")
            code, out, err = self._main([path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "3\n")
        self.assertEqual(err, "")

    def test_static_error_exit_status(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "bad.lox", "print ;\nprint 1;")
            code, out, err = self._main([path])
        self.assertEqual(code, lox_lang.EXIT_STATIC_ERROR)
        self.assertEqual(out, "")
        self.assertIn("[line 1] Error at ';': Expect expression.", err)

    def test_runtime_error_exit_status(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "boom.lox", 'print "a";\nprint -"b";\nprint "c";')
            code, out, err = self._main([path])
        self.assertEqual(code, lox_lang.EXIT_RUNTIME_ERROR)
        self.assertEqual(out, "a\n")
        self.assertEqual(err, "Operand must be a number.\n[line 2]\n")

    def test_missing_file_exit_status(self) -> None:
        missing = os.path.join(tempfile.gettempdir(), "no_such_file_12345.lox")
        code, _, err = self._main([missing])
        self.assertEqual(code, lox_lang.EXIT_NO_INPUT)
        self.assertIn("Could not read", err)

    def test_ast_flag_prints_tree_without_running(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "tree.lox", "print 1 + 2 * 3;\nundefined();")
            code, out, _ = self._main(["--ast", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "(print (+ 1 (* 2 3)))\n(; (call undefined))\n")

    def test_ast_flag_reports_parse_errors(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "tree.lox", "print (1;")
            code, _, err = self._main(["--ast", path])
        self.assertEqual(code, lox_lang.EXIT_STATIC_ERROR)
        self.assertIn("Expect ')' after expression.", err)

    def test_repl_keeps_globals_and_survives_errors(self) -> None:
        replies = ["var a = 1;", "print a +;", "a = a + 1;", "", "print a;"]
        session = lox_lang.Lox()
        out, err = io.StringIO(), io.StringIO()
        with (
            patch.object(session.io, "read_input", side_effect=replies + [None]),
            redirect_stdout(out),
            redirect_stderr(err),
        ):
            lox.run_repl(session)
        self.assertEqual(out.getvalue(), "2\n")
        self.assertIn("Expect expression.", err.getvalue())

    def test_repl_exit_command(self) -> None:
        session = lox_lang.Lox()
        out = io.StringIO()
        with (
            patch.object(session.io, "read_input", side_effect=["print 1;", "exit"]),
            redirect_stdout(out),
        ):
            lox.run_repl(session)
        self.assertEqual(out.getvalue(), "1\n")

    def test_verbose_flag_enables_debug_logging(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "ok.lox", "print 1;")
            with (
                patch.object(lox.logging, "basicConfig") as basic_config,
                self.assertLogs("lox_lang", level="DEBUG") as logs,
            ):
                code, out, _ = self._main(["-v", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "1\n")
        self.assertEqual(basic_config.call_args.kwargs["level"], lox.logging.DEBUG)
        self.assertTrue(any("Parsed 1 statements" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main(verbosity=2)
