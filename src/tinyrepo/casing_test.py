import pytest

from tinyrepo.casing import Case, convert, split_words

CANONICAL = {
    Case.LOWER_SNAKE: ["number_of_toes", "pk", "hair_color"],
    Case.UPPER_SNAKE: ["NUMBER_OF_TOES", "PK"],
    Case.LOWER_CAMEL: ["numberOfToes", "hairColor", "pk"],
    Case.UPPER_CAMEL: ["NumberOfToes", "Pk"],
    Case.LOWER_KEBAB: ["number-of-toes", "hair-color"],
}


class TestConvert:
    @pytest.mark.parametrize(
        "identifier,case,expected",
        [
            ("numberOfToes", Case.LOWER_SNAKE, "number_of_toes"),
            ("numberOfToes", Case.UPPER_SNAKE, "NUMBER_OF_TOES"),
            ("number_of_toes", Case.LOWER_CAMEL, "numberOfToes"),
            ("number_of_toes", Case.UPPER_CAMEL, "NumberOfToes"),
            ("hair_color", Case.LOWER_KEBAB, "hair-color"),
            ("HTTPServer", Case.LOWER_SNAKE, "http_server"),
            ("address2Line", Case.LOWER_SNAKE, "address2_line"),
            ("pk", Case.UPPER_SNAKE, "PK"),
        ],
    )
    def test_convert(self, identifier, case, expected):
        assert convert(identifier, case) == expected

    def test_empty_identifier_is_unchanged(self):
        assert convert("", Case.LOWER_CAMEL) == ""

    @pytest.mark.parametrize("case", list(Case))
    @pytest.mark.parametrize("other", list(Case))
    def test_round_trip(self, case, other):
        for identifier in CANONICAL[case]:
            assert convert(convert(identifier, other), case) == identifier


class TestSplitWords:
    @pytest.mark.parametrize(
        "identifier,words",
        [
            ("numberOfToes", ["number", "of", "toes"]),
            ("NUMBER_OF_TOES", ["number", "of", "toes"]),
            ("number-of__toes", ["number", "of", "toes"]),
            ("parseHTTPResponse", ["parse", "http", "response"]),
        ],
    )
    def test_split_words(self, identifier, words):
        assert split_words(identifier) == words


class TestParse:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("LOWER_SNAKE", Case.LOWER_SNAKE),
            ("lower_camel", Case.LOWER_CAMEL),
            ("  Upper_Snake ", Case.UPPER_SNAKE),
            (Case.UPPER_CAMEL, Case.UPPER_CAMEL),
        ],
    )
    def test_parse(self, value, expected):
        assert Case.parse(value) is expected

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown column casing"):
            Case.parse("screaming")
