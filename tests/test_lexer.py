from bangdoc.annotations.lexer import TokenKind, split_annotation, tokenize_line


class TestSplitAnnotation:
    def test_verb_and_rest(self):
        assert split_annotation('  !info "T" v1  ') == ("info", '"T" v1')

    def test_verb_only(self):
        assert split_annotation("!model") == ("model", "")

    def test_prose_is_not_an_annotation(self):
        assert split_annotation("Just some text") is None

    def test_bare_marker_is_not_an_annotation(self):
        assert split_annotation("! not a verb") is None
        assert split_annotation("!") is None


class TestTokenizeLine:
    def test_token_kinds(self):
        tokens = tokenize_line('/users -> getUsers "Get users" #users limit:integer default=10 <a@b.c> (https://x.y)')
        kinds = [t.kind for t in tokens]
        assert kinds == [
            TokenKind.WORD,
            TokenKind.ARROW,
            TokenKind.WORD,
            TokenKind.STRING,
            TokenKind.TAG,
            TokenKind.PAIR,
            TokenKind.FLAG,
            TokenKind.ANGLE,
            TokenKind.PAREN,
        ]

    def test_string_keeps_spaces(self):
        tokens = tokenize_line('"Hello there"  ')
        assert tokens[0].text == "Hello there"

    def test_escaped_quote(self):
        tokens = tokenize_line(r'"say \"hi\""')
        assert tokens[0].text == 'say "hi"'

    def test_quoted_flag_value(self):
        tokens = tokenize_line('example="John Doe" required')
        assert tokens[0].kind == TokenKind.FLAG
        assert tokens[0].key == "example"
        assert tokens[0].value == "John Doe"
        assert tokens[1].text == "required"

    def test_pair_parts(self):
        token = tokenize_line("id:integer")[0]
        assert (token.key, token.value) == ("id", "integer")

    def test_url_is_a_word(self):
        token = tokenize_line("https://api.test.com/v1?x=1")[0]
        assert token.kind == TokenKind.WORD

    def test_array_tokens_are_words(self):
        tokens = tokenize_line("User[] []Item")
        assert [t.text for t in tokens] == ["User[]", "[]Item"]
        assert all(t.kind == TokenKind.WORD for t in tokens)

    def test_unterminated_quote(self):
        assert tokenize_line('"never closed') is None

    def test_unterminated_quoted_flag(self):
        assert tokenize_line('example="never closed') is None

    def test_unterminated_angle_and_paren(self):
        assert tokenize_line("<a@b.c") is None
        assert tokenize_line("(https://x") is None

    def test_empty(self):
        assert tokenize_line("") == []
