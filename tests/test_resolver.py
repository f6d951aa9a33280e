"""Unit tests for artist credit splitting."""

import pytest

from listening_stats.resolver import (
    EXCEPTION_LIST,
    ArtistNameResolver,
    split_artist_credit,
)


class TestExceptionList:
    """Tests for the curated band and duo names."""

    @pytest.mark.parametrize("name", EXCEPTION_LIST)
    def test_every_entry_stays_whole(self, name: str) -> None:
        """Each listed name resolves to itself."""
        assert split_artist_credit(name) == [name]

    @pytest.mark.parametrize("name", EXCEPTION_LIST)
    def test_entries_match_case_insensitively(self, name: str) -> None:
        """Matching ignores case and keeps the credit as given."""
        assert split_artist_credit(name.upper()) == [name.upper()]

    def test_list_is_immutable(self) -> None:
        """The exception list is a tuple."""
        assert isinstance(EXCEPTION_LIST, tuple)
        assert "Tyler, The Creator" in EXCEPTION_LIST
        assert "Simon & Garfunkel" in EXCEPTION_LIST

    def test_substring_match_keeps_compound_credit_whole(self) -> None:
        """A listed name inside a longer credit blocks splitting entirely."""
        credit = "Tyler, The Creator & Pharrell"
        assert split_artist_credit(credit) == [credit]

    def test_exception_match_returns_credit_unchanged(self) -> None:
        """Surrounding whitespace is left for the caller to trim."""
        assert split_artist_credit("  Earth, Wind & Fire ") == ["  Earth, Wind & Fire "]

    def test_matching_exception_reports_first_entry(self) -> None:
        """The first matching entry in list order wins."""
        resolver = ArtistNameResolver()
        assert resolver.matching_exception("Crosby, Stills & Nash") == "Crosby, Stills & Nash"
        assert resolver.matching_exception("Drake") is None


class TestGenericSplit:
    """Tests for separator-based splitting."""

    def test_tyler_the_creator(self) -> None:
        assert split_artist_credit("Tyler, The Creator") == ["Tyler, The Creator"]

    def test_simon_and_garfunkel(self) -> None:
        assert split_artist_credit("Simon & Garfunkel") == ["Simon & Garfunkel"]

    def test_feat(self) -> None:
        assert split_artist_credit("Drake feat. Rihanna") == ["Drake", "Rihanna"]

    def test_comma(self) -> None:
        assert split_artist_credit("Beyoncé, JAY-Z") == ["Beyoncé", "JAY-Z"]

    @pytest.mark.parametrize(
        "credit,expected",
        [
            ("Kendrick Lamar & SZA", ["Kendrick Lamar", "SZA"]),
            ("Calvin Harris ft. Dua Lipa", ["Calvin Harris", "Dua Lipa"]),
            ("Mark Ronson featuring Bruno Mars", ["Mark Ronson", "Bruno Mars"]),
            ("Post Malone with Swae Lee", ["Post Malone", "Swae Lee"]),
            ("Drake FEAT. Future", ["Drake", "Future"]),
            ("A, B & C feat. D", ["A", "B", "C", "D"]),
        ],
    )
    def test_separators(self, credit: str, expected: list[str]) -> None:
        """Commas, ampersands and featuring words all separate artists."""
        assert split_artist_credit(credit) == expected

    def test_featuring_words_need_surrounding_whitespace(self) -> None:
        """Words merely containing a separator are not split."""
        assert split_artist_credit("Bill Withers") == ["Bill Withers"]
        assert split_artist_credit("Without Warning") == ["Without Warning"]

    def test_empty_pieces_dropped(self) -> None:
        """Doubled or trailing separators leave no empty names."""
        assert split_artist_credit("Drake,, & Future,") == ["Drake", "Future"]


class TestEdgeCases:
    """Tests for empty input and idempotence."""

    @pytest.mark.parametrize("credit", ["", "   ", "\t\n"])
    def test_blank_credit_yields_nothing(self, credit: str) -> None:
        assert split_artist_credit(credit) == []

    def test_none_is_a_caller_error(self) -> None:
        with pytest.raises(TypeError):
            split_artist_credit(None)

    def test_single_name_is_stable(self) -> None:
        """Re-splitting a canonical name returns it unchanged."""
        names = split_artist_credit("Drake feat. Rihanna")
        for name in names:
            assert split_artist_credit(name) == [name]
            assert name.strip() == name

    def test_canonical_names_trim_and_dedupe(self) -> None:
        """Canonical names are trimmed and repeated names collapse."""
        resolver = ArtistNameResolver()
        assert resolver.canonical_names("Drake & Drake feat. Future") == ["Drake", "Future"]
        assert resolver.canonical_names(" Simon & Garfunkel ") == ["Simon & Garfunkel"]


class TestCustomExceptions:
    """Tests for resolvers built with another list."""

    def test_custom_list_replaces_default(self) -> None:
        resolver = ArtistNameResolver(exceptions=["Florence & The Machine"])
        assert resolver.split("Florence & The Machine") == ["Florence & The Machine"]
        assert resolver.split("Simon & Garfunkel") == ["Simon", "Garfunkel"]

    def test_custom_list_is_copied(self) -> None:
        names = ["Florence & The Machine"]
        resolver = ArtistNameResolver(exceptions=names)
        names.append("Simon & Garfunkel")
        assert resolver.exceptions == ("Florence & The Machine",)

    def test_none_list_rejected(self) -> None:
        with pytest.raises(TypeError):
            ArtistNameResolver(exceptions=None)
