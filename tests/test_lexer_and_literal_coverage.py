from __future__ import annotations

import unittest

from formula_expr.lexer import LexError, TokenType, tokenize


class LexerAndLiteralCoverageTests(unittest.TestCase):
    def _tokens(self, source: str, *, with_spans: bool = False):
        result = tokenize(source)
        if with_spans:
            return [(tok.type, tok.value, tok.start, tok.end) for tok in result.tokens if tok.type != TokenType.EOF]
        return [(tok.type, tok.value) for tok in result.tokens if tok.type != TokenType.EOF]

    def _types(self, source: str) -> list[TokenType]:
        return [kind for kind, _ in self._tokens(source)]

    def test_token_golden_member_index_and_strict_equality_spans(self) -> None:
        tokens = self._tokens("a.b[0] === 'x'", with_spans=True)
        self.assertEqual(
            tokens,
            [
                (TokenType.IDENTIFIER, "a", 0, 1),
                (TokenType.DOT, ".", 1, 2),
                (TokenType.IDENTIFIER, "b", 2, 3),
                (TokenType.LBRACKET, "[", 3, 4),
                (TokenType.NUMBER, "0", 4, 5),
                (TokenType.RBRACKET, "]", 5, 6),
                (TokenType.STRICT_EQ, "===", 7, 10),
                (TokenType.STRING, "x", 11, 14),
            ],
        )

    def test_operator_token_classes(self) -> None:
        source = "+ - * / % ** == != === !== < > <= >= && || & !"
        self.assertEqual(
            self._types(source),
            [
                TokenType.PLUS,
                TokenType.MINUS,
                TokenType.MULTIPLY,
                TokenType.DIVIDE,
                TokenType.MODULO,
                TokenType.POWER,
                TokenType.EQ,
                TokenType.NEQ,
                TokenType.STRICT_EQ,
                TokenType.STRICT_NEQ,
                TokenType.LT,
                TokenType.GT,
                TokenType.LTE,
                TokenType.GTE,
                TokenType.AND,
                TokenType.OR,
                TokenType.CONCAT,
                TokenType.NOT,
            ],
        )

    def test_punctuation_token_classes(self) -> None:
        self.assertEqual(
            self._types("( ) [ ] { } , . : ?"),
            [
                TokenType.LPAREN,
                TokenType.RPAREN,
                TokenType.LBRACKET,
                TokenType.RBRACKET,
                TokenType.LBRACE,
                TokenType.RBRACE,
                TokenType.COMMA,
                TokenType.DOT,
                TokenType.COLON,
                TokenType.QUESTION,
            ],
        )

    def test_longest_operator_wins_without_whitespace(self) -> None:
        cases = {
            "a===b": [TokenType.IDENTIFIER, TokenType.STRICT_EQ, TokenType.IDENTIFIER],
            "a!==b": [TokenType.IDENTIFIER, TokenType.STRICT_NEQ, TokenType.IDENTIFIER],
            "a==b": [TokenType.IDENTIFIER, TokenType.EQ, TokenType.IDENTIFIER],
            "a**b": [TokenType.IDENTIFIER, TokenType.POWER, TokenType.IDENTIFIER],
            "a&&b": [TokenType.IDENTIFIER, TokenType.AND, TokenType.IDENTIFIER],
            "a&b": [TokenType.IDENTIFIER, TokenType.CONCAT, TokenType.IDENTIFIER],
            "!=": [TokenType.NEQ],
            "!!a": [TokenType.NOT, TokenType.NOT, TokenType.IDENTIFIER],
            "--a": [TokenType.MINUS, TokenType.MINUS, TokenType.IDENTIFIER],
            "a====b": [TokenType.IDENTIFIER, TokenType.STRICT_EQ, TokenType.IDENTIFIER],
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                result = tokenize(source)
                if source == "a====b":
                    # The fourth `=` has no single-character meaning.
                    self.assertEqual(result.errors, (LexError("Unexpected character: =", 4, 1, 5),))
                else:
                    self.assertEqual(result.errors, ())
                self.assertEqual(self._types(source), expected)

    def test_number_forms(self) -> None:
        for source in ("0", "42", "3.14", ".5", "1e10", "1E+3", "2.5e-3", "007"):
            with self.subTest(source=source):
                self.assertEqual(self._tokens(source, with_spans=True), [(TokenType.NUMBER, source, 0, len(source))])

    def test_dot_only_starts_number_when_followed_by_digit(self) -> None:
        self.assertEqual(
            self._tokens("1.foo"),
            [(TokenType.NUMBER, "1"), (TokenType.DOT, "."), (TokenType.IDENTIFIER, "foo")],
        )
        self.assertEqual(self._tokens("1."), [(TokenType.NUMBER, "1"), (TokenType.DOT, ".")])
        self.assertEqual(self._tokens("obj.5"), [(TokenType.IDENTIFIER, "obj"), (TokenType.NUMBER, ".5")])
        self.assertEqual(
            self._tokens("obj.x"),
            [(TokenType.IDENTIFIER, "obj"), (TokenType.DOT, "."), (TokenType.IDENTIFIER, "x")],
        )
        self.assertEqual(self._tokens("1.5.2"), [(TokenType.NUMBER, "1.5"), (TokenType.NUMBER, ".2")])

    def test_exponent_without_digits_is_lexical_error(self) -> None:
        result = tokenize("1e")
        self.assertEqual(result.errors, (LexError("Invalid number: expected digit after exponent", 2, 1, 3),))
        self.assertEqual([tok.type for tok in result.tokens], [TokenType.EOF])

        result = tokenize("2e+x")
        self.assertEqual(result.errors, (LexError("Invalid number: expected digit after exponent", 3, 1, 4),))
        self.assertEqual(self._types("2e+x"), [TokenType.IDENTIFIER])

    def test_string_decoding_and_escapes(self) -> None:
        cases = (
            ('"hello"', "hello"),
            ("'world'", "world"),
            ('"a\\nb"', "a\nb"),
            ('"tab\\there"', "tab\there"),
            ('"cr\\r"', "cr\r"),
            ('"back\\\\slash"', "back\\slash"),
            ('"say \\"hi\\""', 'say "hi"'),
            ("'it\\'s'", "it's"),
            ('"\\q"', "q"),
            ("\"mixed 'quotes'\"", "mixed 'quotes'"),
            ('"Hello 世界"', "Hello 世界"),
            ('""', ""),
        )
        for source, expected in cases:
            with self.subTest(source=source):
                tokens = self._tokens(source, with_spans=True)
                self.assertEqual(tokens, [(TokenType.STRING, expected, 0, len(source))])

    def test_unterminated_strings(self) -> None:
        result = tokenize('"abc')
        self.assertEqual(result.errors, (LexError("Unterminated string", 4, 1, 5),))
        self.assertEqual([tok.type for tok in result.tokens], [TokenType.EOF])

        result = tokenize("'abc\"")
        self.assertEqual(result.errors, (LexError("Unterminated string", 5, 1, 6),))

        result = tokenize('"trailing\\')
        self.assertEqual(result.errors, (LexError("Unterminated string", 10, 1, 11),))

    def test_newline_inside_string_reports_then_keeps_scanning(self) -> None:
        result = tokenize('"ab\ncd"')
        self.assertEqual(
            result.errors,
            (
                LexError("Unterminated string: unexpected newline", 3, 1, 4),
                LexError("Unterminated string", 7, 2, 4),
            ),
        )
        self.assertEqual(self._tokens('"ab\ncd"'), [(TokenType.IDENTIFIER, "cd")])

    def test_keywords_are_case_insensitive_and_keep_spelling(self) -> None:
        self.assertEqual(
            self._tokens("TRUE False null AND or Not foo"),
            [
                (TokenType.BOOLEAN, "TRUE"),
                (TokenType.BOOLEAN, "False"),
                (TokenType.NULL, "null"),
                (TokenType.AND, "AND"),
                (TokenType.OR, "or"),
                (TokenType.NOT, "Not"),
                (TokenType.IDENTIFIER, "foo"),
            ],
        )

    def test_identifier_characters(self) -> None:
        self.assertEqual(
            self._tokens("$price_2 _x truth nullable"),
            [
                (TokenType.IDENTIFIER, "$price_2"),
                (TokenType.IDENTIFIER, "_x"),
                (TokenType.IDENTIFIER, "truth"),
                (TokenType.IDENTIFIER, "nullable"),
            ],
        )

    def test_unknown_characters_are_skipped_and_collected(self) -> None:
        result = tokenize("1 # 2 @")
        self.assertEqual(
            result.errors,
            (
                LexError("Unexpected character: #", 2, 1, 3),
                LexError("Unexpected character: @", 6, 1, 7),
            ),
        )
        self.assertEqual(self._tokens("1 # 2 @"), [(TokenType.NUMBER, "1"), (TokenType.NUMBER, "2")])

    def test_line_and_column_tracking(self) -> None:
        result = tokenize("a +\n  b")
        positions = [(tok.type, tok.line, tok.column, tok.start) for tok in result.tokens]
        self.assertEqual(
            positions,
            [
                (TokenType.IDENTIFIER, 1, 1, 0),
                (TokenType.PLUS, 1, 3, 2),
                (TokenType.IDENTIFIER, 2, 3, 6),
                (TokenType.EOF, 2, 4, 7),
            ],
        )

    def test_exactly_one_eof_token_always_ends_the_stream(self) -> None:
        for source in ("", "   ", "1 + 2", "@@", '"open', "1e"):
            with self.subTest(source=source):
                tokens = tokenize(source).tokens
                self.assertEqual(tokens[-1].type, TokenType.EOF)
                self.assertEqual(sum(1 for tok in tokens if tok.type == TokenType.EOF), 1)
                self.assertEqual((tokens[-1].start, tokens[-1].end, tokens[-1].value), (len(source), len(source), ""))

    def test_tokens_are_immutable(self) -> None:
        tok = tokenize("x").tokens[0]
        with self.assertRaises(AttributeError):
            tok.value = "y"  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
