from __future__ import annotations

import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import lox_lang
from lox_lang.nodes import (
    EXPR_RULES,
    STMT_RULES,
    Expression,
    Literal,
    Print,
    Unary,
    Variable,
)


def _parse(source: str) -> lox_lang.ParseOutcome:
    scanned = lox_lang.scan(source)
    return lox_lang.parse(scanned.tokens)


def _resolve(source: str) -> lox_lang.ResolveOutcome:
    parsed = _parse(source)
    assert parsed.ok, parsed.errors
    return lox_lang.resolve(parsed.statements)


def _table(outcome: lox_lang.ResolveOutcome) -> list[tuple[str, str, int, int]]:
    rows = []
    for expr, depth in outcome.locals.items():
        token = getattr(expr, "name", None) or expr.keyword
        rows.append((type(expr).__name__, token.lexeme, token.line, depth))
    return rows


def _tok(lexeme: str, line: int = 1) -> lox_lang.Token:
    return lox_lang.Token("IDENTIFIER", lexeme, None, line)


class ScannerTests(unittest.TestCase):
    def test_keywords_identifiers_and_literals(self) -> None:
        out = lox_lang.scan('var orchid = "hi" + 12.5; // trailing comment')
        self.assertEqual(out.errors, [])
        self.assertEqual(
            [t.type for t in out.tokens],
            ["VAR", "IDENTIFIER", "EQUAL", "STRING", "PLUS", "NUMBER", "SEMICOLON", "EOF"],
        )
        self.assertEqual(out.tokens[1].lexeme, "orchid")
        self.assertEqual(out.tokens[3].literal, "hi")
        self.assertEqual(out.tokens[5].literal, 12.5)

    def test_two_character_operators(self) -> None:
        out = lox_lang.scan("! != = == < <= > >= /")
        self.assertEqual(
            [t.type for t in out.tokens][:-1],
            [
                "BANG",
                "BANG_EQUAL",
                "EQUAL",
                "EQUAL_EQUAL",
                "LESS",
                "LESS_EQUAL",
                "GREATER",
                "GREATER_EQUAL",
                "SLASH",
            ],
        )

    def test_unexpected_character_is_reported_and_scanning_continues(self) -> None:
        out = lox_lang.scan("\n\n@\nvar")
        self.assertEqual(
            [str(e) for e in out.errors], ["[line 3] Error: Unexpected character."]
        )
        self.assertEqual([t.type for t in out.tokens], ["VAR", "EOF"])
        self.assertEqual(out.tokens[0].line, 4)

    def test_unterminated_string(self) -> None:
        out = lox_lang.scan('print "abc')
        self.assertEqual(
            [str(e) for e in out.errors], ["[line 1] Error: Unterminated string."]
        )
        self.assertEqual([t.type for t in out.tokens], ["PRINT", "EOF"])

    def test_unterminated_string_is_reported_at_end_of_input(self) -> None:
        out = lox_lang.scan('print 1;\n"abc\ndef\n')
        self.assertEqual(
            [str(e) for e in out.errors], ["[line 4] Error: Unterminated string."]
        )
        self.assertEqual(
            [t.type for t in out.tokens], ["PRINT", "NUMBER", "SEMICOLON", "EOF"]
        )

    def test_multiline_string_advances_line_count(self) -> None:
        out = lox_lang.scan('"a\nb" x')
        self.assertEqual(out.tokens[0].literal, "a\nb")
        self.assertEqual(out.tokens[1].line, 2)


class ParserTests(unittest.TestCase):
    def _render(self, source: str) -> str:
        parsed = _parse(source)
        self.assertTrue(parsed.ok, parsed.errors)
        return lox_lang.AstPrinter().render_program(parsed.statements)

    def test_prints_classic_expression(self) -> None:
        parsed = _parse("-123 * (45.67);")
        stmt = parsed.statements[0]
        self.assertIsInstance(stmt, Expression)
        self.assertEqual(
            lox_lang.AstPrinter().render(stmt.expression), "(* (- 123) (group 45.67))"
        )

    def test_precedence_including_logical_operators(self) -> None:
        self.assertEqual(
            self._render("1 + 2 * 3 == 7 and !false or nil;"),
            "(; (or (and (== (+ 1 (* 2 3)) 7) (! false)) nil))",
        )

    def test_for_desugars_to_block_and_while(self) -> None:
        self.assertEqual(
            self._render("for (var i = 0; i < 3; i = i + 1) print i;"),
            "(block (var i 0) (while (< i 3) (block (print i) (; (= i (+ i 1))))))",
        )
        self.assertEqual(
            self._render("for (;;) print 1;"),
            "(block (empty) (while true (block (print 1) (empty))))",
        )

    def test_property_assignment_becomes_set(self) -> None:
        self.assertEqual(self._render("a.b.c = 1;"), "(; (= (. (. a b) c) 1))")

    def test_class_and_function_declarations(self) -> None:
        self.assertEqual(
            self._render("class A { init(x) { this.x = x; } } fun f() { return; }"),
            "(class A (fun init (x) (; (= (. this x) x))))\n(fun f () (return))",
        )

    def test_invalid_assignment_target_does_not_abort(self) -> None:
        parsed = _parse("1 = 2; print 3;")
        self.assertEqual(
            [str(e) for e in parsed.errors],
            ["[line 1] Error at '=': Invalid assignment target."],
        )
        self.assertEqual(len(parsed.statements), 2)

    def test_synchronize_surfaces_independent_errors(self) -> None:
        parsed = _parse("var = 1;\nprint ;\nprint 3;")
        self.assertEqual(
            [str(e) for e in parsed.errors],
            [
                "[line 1] Error at '=': Expect variable name.",
                "[line 2] Error at ';': Expect expression.",
            ],
        )
        self.assertEqual(len(parsed.statements), 1)

    def test_missing_semicolon_at_end(self) -> None:
        parsed = _parse("print 1")
        self.assertEqual(
            [str(e) for e in parsed.errors],
            ["[line 1] Error at end: Expect ';' after value."],
        )

    def test_argument_cap_is_recorded_not_fatal(self) -> None:
        args = ", ".join(["1"] * 256)
        parsed = _parse(f"f({args});")
        self.assertEqual(
            [e.message for e in parsed.errors],
            ["Can't have more than 255 arguments."],
        )
        self.assertEqual(len(parsed.statements), 1)

    def test_parameter_cap_is_recorded_not_fatal(self) -> None:
        params = ", ".join(f"p{i}" for i in range(256))
        parsed = _parse(f"fun f({params}) {{}}")
        self.assertEqual(
            [e.message for e in parsed.errors],
            ["Can't have more than 255 parameters."],
        )
        self.assertEqual(len(parsed.statements), 1)


class ResolverTests(unittest.TestCase):
    def test_globals_are_left_out_of_the_table(self) -> None:
        out = _resolve("var g = 1;\n{ var a = 1; { print a; print g; } }")
        self.assertEqual(_table(out), [("Variable", "a", 2, 1)])

    def test_closure_and_this_distances(self) -> None:
        out = _resolve(
            "fun outer() { var x = 1; fun inner() { return x; } return inner; }\n"
            "class C { m() { return this; } }"
        )
        self.assertEqual(
            _table(out),
            [("Variable", "x", 1, 1), ("Variable", "inner", 1, 0), ("This", "this", 2, 1)],
        )

    def test_assignment_is_resolved(self) -> None:
        out = _resolve("{ var a; { a = 2; } }")
        self.assertEqual(_table(out), [("Assign", "a", 1, 1)])

    def test_resolving_twice_yields_identical_tables(self) -> None:
        source = (
            "fun make() { var n = 0; fun inc() { n = n + 1; return n; } return inc; }\n"
            "class P { init(v) { this.v = v; } get() { return this.v; } }\n"
            "{ var i = make(); print i(); }"
        )
        first, second = _resolve(source), _resolve(source)
        self.assertEqual(_table(first), _table(second))
        self.assertTrue(first.locals)

    def test_table_is_keyed_by_node_identity(self) -> None:
        parsed = _parse("{ var a = 1; print a; print a; }")
        out = lox_lang.resolve(parsed.statements)
        nodes = list(out.locals)
        self.assertEqual(len(nodes), 2)
        self.assertIsNot(nodes[0], nodes[1])
        self.assertTrue(all(isinstance(n, Variable) for n in nodes))

    def test_function_may_reference_itself(self) -> None:
        out = _resolve("{ fun f(n) { if (n > 0) f(n - 1); } }")
        self.assertEqual(out.errors, [])

    def test_session_records_depths_through_interpreter(self) -> None:
        session = lox_lang.Lox()
        interpreter = session.interpreter
        with (
            patch.object(interpreter, "resolve", wraps=interpreter.resolve) as hook,
            redirect_stdout(io.StringIO()),
        ):
            session.run("{ var a = 1; print a; }")
        hook.assert_called_once()
        expr, depth = hook.call_args.args
        self.assertIsInstance(expr, Variable)
        self.assertEqual(depth, 0)
        self.assertEqual(interpreter.locals, {expr: 0})

    def test_visitors_cover_every_node_kind(self) -> None:
        for visitor in (lox_lang.Resolver, lox_lang.Interpreter, lox_lang.AstPrinter):
            for rule in EXPR_RULES + STMT_RULES:
                self.assertTrue(
                    callable(getattr(visitor, rule, None)),
                    f"{visitor.__name__} is missing {rule}",
                )


class EnvironmentTests(unittest.TestCase):
    def test_define_get_assign_walk_the_chain(self) -> None:
        outer = lox_lang.Environment()
        outer.define("g", 1)
        inner = lox_lang.Environment(outer)
        self.assertEqual(inner.get(_tok("g")), 1)
        inner.assign(_tok("g"), 2)
        self.assertEqual(outer.values["g"], 2)
        self.assertNotIn("g", inner.values)

    def test_redefinition_overwrites(self) -> None:
        env = lox_lang.Environment()
        env.define("a", 1)
        env.define("a", 2)
        self.assertEqual(env.get(_tok("a")), 2)

    def test_undefined_variable(self) -> None:
        env = lox_lang.Environment(lox_lang.Environment())
        with self.assertRaises(lox_lang.LoxRuntimeError) as ctx:
            env.get(_tok("missing", line=7))
        self.assertEqual(ctx.exception.message, "Undefined variable 'missing'.")
        self.assertEqual(ctx.exception.token.line, 7)
        with self.assertRaises(lox_lang.LoxRuntimeError):
            env.assign(_tok("missing"), 1)

    def test_indexed_access_skips_shadowing_frames(self) -> None:
        root = lox_lang.Environment()
        root.define("x", "root")
        middle = lox_lang.Environment(root)
        middle.define("x", "middle")
        leaf = lox_lang.Environment(middle)
        self.assertEqual(leaf.get_at(2, "x"), "root")
        self.assertEqual(leaf.get_at(1, "x"), "middle")
        leaf.assign_at(2, _tok("x"), "changed")
        self.assertEqual(root.values["x"], "changed")
        self.assertEqual(middle.values["x"], "middle")


class ValueCanonTests(unittest.TestCase):
    def test_truthiness(self) -> None:
        truthy = lox_lang.ValueCanon.is_truthy
        self.assertFalse(truthy(None))
        self.assertFalse(truthy(False))
        self.assertTrue(truthy(0.0))
        self.assertTrue(truthy(""))

    def test_equality_never_coerces(self) -> None:
        equal = lox_lang.ValueCanon.is_equal
        self.assertTrue(equal(None, None))
        self.assertFalse(equal(None, False))
        self.assertFalse(equal(True, 1.0))
        self.assertFalse(equal("1", 1.0))
        self.assertTrue(equal(2.0, 2.0))

    def test_stringify(self) -> None:
        s = lox_lang.ValueCanon.stringify
        self.assertEqual(s(3.0), "3")
        self.assertEqual(s(-0.5), "-0.5")
        self.assertEqual(s(False), "false")
        self.assertEqual(s("text"), "text")


class ObjectModelTests(unittest.TestCase):
    def _run(self, source: str) -> tuple[lox_lang.RunOutcome, str]:
        session = lox_lang.Lox(config=lox_lang.RuntimeConfig())
        buf = io.StringIO()
        with redirect_stdout(buf):
            outcome = session.run(source)
        return outcome, buf.getvalue()

    def test_class_arity_follows_init(self) -> None:
        session = lox_lang.Lox()
        outcome = session.run("class A {} class B { init(a, b) {} }")
        self.assertFalse(outcome.had_error)
        globals_ = session.interpreter.globals.values
        self.assertEqual(globals_["A"].arity(), 0)
        self.assertEqual(globals_["B"].arity(), 2)

    def test_fields_shadow_methods(self) -> None:
        _, out = self._run(
            'class A { m() { return "method"; } } var a = A(); a.m = "field"; print a.m;'
        )
        self.assertEqual(out, "field\n")

    def test_property_access_on_non_instance(self) -> None:
        outcome, _ = self._run('var s = "str"; print s.length;')
        self.assertEqual(outcome.runtime_error.message, "Only instances have properties.")
        outcome, _ = self._run('var s = "str"; s.length = 1;')
        self.assertEqual(outcome.runtime_error.message, "Only instances have fields.")

    def test_undefined_property(self) -> None:
        outcome, _ = self._run("class A {} A().nope;")
        self.assertEqual(outcome.runtime_error.message, "Undefined property 'nope'.")

    def test_operand_type_errors(self) -> None:
        cases = {
            '-"a";': "Operand must be a number.",
            '1 < "a";': "Operands must be numbers.",
            '1 + "a";': "Operands must be numbers or two strings.",
            "nil * 2;": "Operands must be numbers.",
        }
        for source, message in cases.items():
            with self.subTest(source=source):
                outcome, _ = self._run(source)
                self.assertEqual(outcome.runtime_error.message, message)

    def test_bang_accepts_any_value(self) -> None:
        _, out = self._run('print !nil; print !"";')
        self.assertEqual(out, "true\nfalse\n")

    def test_return_unwinds_nested_loops_and_blocks(self) -> None:
        _, out = self._run(
            "fun find() { for (var i = 0; i < 10; i = i + 1) { while (true) { "
            "if (i == 3) return i; i = i + 1; } } return -1; } print find();"
        )
        self.assertEqual(out, "3\n")

    def test_environment_restored_after_runtime_error(self) -> None:
        session = lox_lang.Lox()
        buf = io.StringIO()
        with redirect_stdout(buf):
            session.run("var a = 1; fun f() { var a = 2; nil(); }")
            with self.assertLogs("lox_lang.interpreter", level="DEBUG"):
                outcome = session.run("f();")
            session.run("print a;")
        self.assertTrue(outcome.had_runtime_error)
        self.assertIs(session.interpreter.environment, session.interpreter.globals)
        self.assertEqual(buf.getvalue(), "1\n")

    def test_globals_persist_across_runs(self) -> None:
        session = lox_lang.Lox()
        buf = io.StringIO()
        with redirect_stdout(buf):
            session.run("var counter = 1;")
            bad = session.run("print counter +;")
            session.run("counter = counter + 1; print counter;")
        self.assertTrue(bad.had_error)
        self.assertEqual(buf.getvalue(), "2\n")

    def test_clock_is_native(self) -> None:
        _, out = self._run("var t = clock(); print t > 0;")
        self.assertEqual(out, "true\n")

    def test_deep_top_level_expression_is_a_runtime_error(self) -> None:
        bang = lox_lang.Token("BANG", "!", None, 3)
        expr = Literal(True)
        for _ in range(60000):
            expr = Unary(bang, expr)
        interpreter = lox_lang.Interpreter()
        error = interpreter.interpret([Print(expr)])
        self.assertIsNotNone(error)
        self.assertEqual(str(error), "Stack overflow.\n[line 3]")
        self.assertIs(interpreter.environment, interpreter.globals)

    def test_raising_the_recursion_limit_is_logged(self) -> None:
        with (
            patch("sys.getrecursionlimit", return_value=100),
            patch("sys.setrecursionlimit") as set_limit,
            self.assertLogs("lox_lang.interpreter", level="DEBUG") as logs,
        ):
            lox_lang.Interpreter(config=lox_lang.RuntimeConfig(max_call_depth=10))
        set_limit.assert_called_once_with(10 * 24 + 500)
        self.assertTrue(any("Raising recursion limit" in line for line in logs.output))

    def test_console_escapes_text_stdout_cannot_encode(self) -> None:
        raw = io.BytesIO()
        stream = io.TextIOWrapper(raw, encoding="ascii", newline="\n")
        with redirect_stdout(stream):
            lox_lang.ConsoleIO().emit("caf\u00e9")
        stream.flush()
        self.assertEqual(raw.getvalue(), b"caf\\xe9\n")


if __name__ == "__main__":
    unittest.main(verbosity=2)
