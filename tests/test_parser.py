"""Tests for the tokenizer, classifier and invocation parser."""

import dataclasses

import pytest

from curl2code.errors import InvalidInvocation
from curl2code.parser import (
    ContentFacets,
    RequestDescriptor,
    classify_content_type,
    load_invocation_file,
    parse_invocation,
    parse_tokens,
    tokenize,
)


class TestTokenize:
    """Tests for the quote-aware tokenizer."""

    def test_bare_tokens(self):
        assert tokenize("curl -X GET https://x.test") == [
            "curl", "-X", "GET", "https://x.test",
        ]

    def test_strips_double_quotes(self):
        assert tokenize('curl -H "Accept: */*"') == ["curl", "-H", "Accept: */*"]

    def test_strips_single_quotes(self):
        assert tokenize("curl -d '{\"a\": 1}'") == ["curl", "-d", '{"a": 1}']

    def test_interior_taken_literally(self):
        tokens = tokenize("curl -d 'it\"s \\n raw'")
        assert tokens[2] == 'it"s \\n raw'

    def test_only_one_pair_stripped(self):
        assert tokenize("curl \"'inner'\"") == ["curl", "'inner'"]

    def test_unterminated_quote_takes_remainder(self):
        tokens = tokenize("curl -H 'Accept: text/html https://x.test")
        assert tokens == ["curl", "-H", "Accept: text/html https://x.test"]

    def test_line_continuations_are_joined(self):
        raw = "curl 'https://x.test' \\\n  -H 'Accept: application/json' \\\n  -X PUT"
        assert tokenize(raw) == [
            "curl", "https://x.test", "-H", "Accept: application/json", "-X", "PUT",
        ]

    def test_empty_string(self):
        assert tokenize("") == []

    def test_empty_quotes_give_empty_token(self):
        assert tokenize("curl -d '' https://x.test") == [
            "curl", "-d", "", "https://x.test",
        ]


class TestClassifyContentType:
    """Tests for content-type facet derivation."""

    def test_no_content_type(self):
        facets = classify_content_type({"Accept": "application/json"})
        assert facets == ContentFacets()
        assert facets.body_kind is None

    def test_json(self):
        facets = classify_content_type({"Content-Type": "application/json; charset=utf-8"})
        assert facets.is_json is True
        assert facets.body_kind == "json"

    def test_case_insensitive_name_and_value(self):
        facets = classify_content_type({"content-type": "Application/X-WWW-Form-Urlencoded"})
        assert facets.is_form is True
        assert facets.is_json is False

    def test_multipart(self):
        facets = classify_content_type({"Content-Type": "multipart/form-data; boundary=x"})
        assert facets.is_multipart is True
        assert facets.body_kind == "multipart"

    def test_last_spelling_wins(self):
        facets = classify_content_type({
            "Content-Type": "application/json",
            "content-type": "text/plain",
        })
        assert facets == ContentFacets()

    def test_first_facet_governs(self):
        facets = ContentFacets(is_json=False, is_form=True, is_multipart=True)
        assert facets.body_kind == "form"


class TestParseInvocation:
    """Tests for the flag parser."""

    def test_plain_get(self):
        d = parse_invocation("curl https://x.test")
        assert d.method == "GET"
        assert d.url == "https://x.test"
        assert dict(d.headers) == {}
        assert d.body is None

    def test_body_defaults_to_post_without_content_type(self):
        d = parse_invocation("curl -d '{\"a\":1}' https://x.test")
        assert d.method == "POST"
        assert d.body == '{"a":1}'
        assert d.facets.is_json is False

    def test_end_to_end_example(self):
        d = parse_invocation(
            "curl -X POST -H \"Content-Type: application/json\" "
            "-d '{\"a\":1}' https://api.test/items"
        )
        assert d.method == "POST"
        assert d.url == "https://api.test/items"
        assert dict(d.headers) == {"Content-Type": "application/json"}
        assert d.body == '{"a":1}'
        assert d.facets.is_json is True

    def test_case_insensitive_command(self):
        assert parse_invocation("CURL https://x.test").url == "https://x.test"

    def test_explicit_method_wins_before_data(self):
        d = parse_invocation("curl -X PUT -d x=1 https://x.test")
        assert d.method == "PUT"

    def test_explicit_method_wins_after_data(self):
        d = parse_invocation("curl -d x=1 --request PATCH https://x.test")
        assert d.method == "PATCH"

    def test_explicit_get_with_body_stays_get(self):
        d = parse_invocation("curl -X GET --data-raw q=1 https://x.test")
        assert d.method == "GET"

    def test_method_value_preserved(self):
        assert parse_invocation("curl -X purge https://x.test").method == "purge"

    @pytest.mark.parametrize("flag", ["-d", "--data", "--data-raw", "--data-binary"])
    def test_data_flags(self, flag):
        d = parse_invocation(f"curl {flag} 'a=b' https://x.test")
        assert d.body == "a=b"
        assert d.method == "POST"

    def test_url_flag(self):
        d = parse_invocation("curl --url https://x.test/a -H 'Accept: */*'")
        assert d.url == "https://x.test/a"

    def test_header_order_and_overwrite_in_place(self):
        d = parse_invocation(
            "curl -H 'A: 1' -H 'B: 2' -H 'C: 3' -H 'A: 4' https://x.test"
        )
        assert list(d.headers.items()) == [("A", "4"), ("B", "2"), ("C", "3")]

    def test_header_split_on_first_colon_and_trimmed(self):
        d = parse_invocation("curl --header '  X-Time :  12:30:00 ' https://x.test")
        assert d.headers["X-Time"] == "12:30:00"

    def test_unknown_flags_ignored_but_reported(self):
        d = parse_invocation("curl --compressed -k https://x.test extra")
        assert d.url == "https://x.test"
        assert d.ignored == ("--compressed", "-k", "extra")

    def test_header_without_colon_reported(self):
        d = parse_invocation("curl -H 'nocolon' https://x.test")
        assert dict(d.headers) == {}
        assert d.ignored == ("-H", "nocolon")

    def test_trailing_flag_without_value(self):
        d = parse_invocation("curl https://x.test -X")
        assert d.method == "GET"
        assert d.ignored == ("-X",)

    def test_first_bare_token_is_url(self):
        d = parse_invocation("curl https://first.test https://second.test")
        assert d.url == "https://first.test"

    def test_missing_url_raises(self):
        with pytest.raises(InvalidInvocation, match="No URL"):
            parse_invocation('curl -H "Accept: */*"')

    def test_wrong_command_raises(self):
        with pytest.raises(InvalidInvocation, match="must start with"):
            parse_invocation("wget https://x.test")

    def test_empty_input_raises(self):
        with pytest.raises(InvalidInvocation):
            parse_tokens([])

    def test_invalid_invocation_is_value_error(self):
        with pytest.raises(ValueError):
            parse_invocation("http https://x.test")

    def test_deterministic(self):
        raw = "curl -X POST -H 'A: 1' -H 'B: 2' -d '{\"k\": [1, 2]}' --compressed https://x.test"
        assert parse_invocation(raw) == parse_invocation(raw)

    def test_source_kept_but_not_compared(self):
        spaced = parse_invocation("curl   https://x.test")
        assert spaced.source == "curl   https://x.test"
        assert spaced == parse_invocation("curl https://x.test")


class TestRequestDescriptor:
    """Tests for the descriptor value object."""

    def test_is_immutable(self):
        d = parse_invocation("curl -H 'A: 1' https://x.test")
        with pytest.raises(dataclasses.FrozenInstanceError):
            d.method = "DELETE"
        with pytest.raises(TypeError):
            d.headers["B"] = "2"

    def test_headers_copied_from_input(self):
        headers = {"A": "1"}
        d = RequestDescriptor(url="https://x.test", headers=headers)
        headers["B"] = "2"
        assert dict(d.headers) == {"A": "1"}

    def test_empty_url_rejected(self):
        with pytest.raises(InvalidInvocation):
            RequestDescriptor(url="")

    def test_repr(self):
        r = repr(RequestDescriptor(url="https://x.test", headers={"A": "1"}))
        assert "GET" in r
        assert "<1 headers>" in r
        assert "<none>" in r

    def test_repr_with_body(self):
        r = repr(RequestDescriptor(url="https://x.test", method="POST", body="x"))
        assert "<present>" in r


class TestLoadInvocationFile:
    """Tests for load_invocation_file."""

    def test_load_valid_file(self, tmp_path):
        f = tmp_path / "req.sh"
        f.write_text("curl https://x.test\n")
        assert "curl https://x.test" in load_invocation_file(str(f))

    def test_load_nonexistent_file(self):
        with pytest.raises(FileNotFoundError):
            load_invocation_file("/nonexistent/path/req.sh")
