from __future__ import annotations

import unittest
from concurrent.futures import ThreadPoolExecutor

from formula_expr.ast import Literal, walk
from formula_expr.lexer import TokenType, tokenize
from formula_expr.parser import ParseSuccess, parse

_VALID_SOURCES = (
    "1 + 2 * 3",
    "price * (1 - discount) & ' EUR'",
    "a.b[0](1, 2).baz",
    "{a: 1, \"b\": [true, null]}",
    "x >= 10 && y !== 'n' || !z ? a ** b ** c : -d % e",
    "IF(status == \"open\", NOW(), null)",
    "  spaced\t\n  + out  ",
    ".5 + 1e-3 - 2.75E+2",
)


class InferredPropertiesTests(unittest.TestCase):
    def test_numeric_literals_parse_to_their_value(self) -> None:
        for source in ("0", "7", "12345", "0.25", ".125", "1e0", "6.02e23", "1E-7", "3e+2"):
            with self.subTest(source=source):
                result = parse(source)
                assert isinstance(result, ParseSuccess)
                self.assertIsInstance(result.ast, Literal)
                self.assertEqual(result.ast.value, float(source))

    def test_token_spans_round_trip_to_lexemes(self) -> None:
        for source in _VALID_SOURCES:
            with self.subTest(source=source):
                scanned = tokenize(source)
                self.assertEqual(scanned.errors, ())
                for tok in scanned.tokens:
                    lexeme = source[tok.start : tok.end]
                    if tok.type == TokenType.STRING:
                        self.assertEqual(lexeme[1:-1], tok.value)
                        self.assertIn(lexeme[0], {'"', "'"})
                    else:
                        self.assertEqual(lexeme, tok.value)

    def test_node_spans_stay_inside_source(self) -> None:
        for source in _VALID_SOURCES:
            with self.subTest(source=source):
                result = parse(source)
                assert isinstance(result, ParseSuccess)
                for node in walk(result.ast):
                    self.assertLessEqual(0, node.start)
                    self.assertLessEqual(node.start, node.end)
                    self.assertLessEqual(node.end, len(source))
                    self.assertGreaterEqual(node.start, result.ast.start)
                    self.assertLessEqual(node.end, result.ast.end)

    def test_parse_is_idempotent(self) -> None:
        for source in (*_VALID_SOURCES, "1 +", '"open', "{a 1}"):
            with self.subTest(source=source):
                self.assertEqual(parse(source), parse(source))

    def test_concurrent_parses_do_not_interfere(self) -> None:
        sources = list(_VALID_SOURCES) * 8
        expected = [parse(source) for source in sources]
        with ThreadPoolExecutor(max_workers=8) as pool:
            actual = list(pool.map(parse, sources))
        self.assertEqual(actual, expected)


if __name__ == "__main__":
    unittest.main()
