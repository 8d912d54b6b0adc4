"""Unit tests for speech text normalization."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from guidevoice.text.normalizer import (
    clean_symbols,
    is_english,
    normalize,
    number_to_ordinal,
    number_to_words,
)


class TestNumberToWords:
    """Test cardinal number spelling."""

    @pytest.mark.parametrize(
        ("num", "expected"),
        [
            (0, "zero"),
            (7, "seven"),
            (13, "thirteen"),
            (20, "twenty"),
            (23, "twenty three"),
            (100, "one hundred"),
            (305, "three hundred five"),
            (1000, "one thousand"),
            (1005, "one thousand five"),
            (2501, "two thousand five hundred one"),
            (9999, "nine thousand nine hundred ninety nine"),
        ],
    )
    def test_spells_numbers_up_to_9999(self, num: int, expected: str) -> None:
        """Test integers 0-9999 become cardinal words."""
        assert number_to_words(num) == expected

    def test_large_and_negative_numbers_stay_digits(self) -> None:
        """Test values outside 0-9999 are returned as digits."""
        assert number_to_words(10000) == "10000"
        assert number_to_words(-1) == "-1"


class TestNumberToOrdinal:
    """Test ordinal number spelling."""

    @pytest.mark.parametrize(
        ("num", "expected"),
        [
            (1, "first"),
            (3, "third"),
            (12, "twelfth"),
            (21, "twenty first"),
            (40, "fortieth"),
            (100, "hundredth"),
            (101, "one hundred first"),
            (1000, "one thousandth"),
        ],
    )
    def test_spells_ordinals(self, num: int, expected: str) -> None:
        """Test ordinal words for common values."""
        assert number_to_ordinal(num) == expected


class TestNormalizeEnglish:
    """Test numeral and symbol expansion of English text."""

    def test_cardinal_in_sentence(self) -> None:
        """Test integers inside a sentence become words."""
        assert normalize("deal 23 damage", "en") == "deal twenty three damage"

    def test_large_integer_left_as_digits(self) -> None:
        """Test integers of 10000 and above are not spelled out."""
        assert normalize("absorb 12000 damage", "en") == "absorb 12000 damage"

    def test_very_long_digit_runs_left_as_digits(self) -> None:
        """Test digit runs of any length pass through every numeral rule."""
        digits = "1" * 5000

        assert normalize(f"deal {digits} damage", "en") == f"deal {digits} damage"
        assert normalize(f"{digits}th", "en") == f"{digits}th"
        assert normalize(f"x{digits}", "en") == f"times {digits}"
        assert normalize(f"{digits}%", "en") == f"{digits} percent"
        assert normalize(f"{digits}x2", "en") == f"{digits} times two"

    def test_leading_zeros_still_spoken(self) -> None:
        """Test zero padding does not push a small number out of range."""
        assert normalize("pull 00007", "en") == "pull seven"

    def test_ordinal_suffix(self) -> None:
        """Test ordinal suffixes become ordinal words."""
        assert normalize("3rd", "en") == "third"
        assert normalize("Stack on 11th add", "en") == "Stack on eleventh add"

    def test_wave_phrase_keeps_rest_of_string(self) -> None:
        """Test the ordinal is substituted in place inside a wave phrase."""
        assert normalize("Waves (Left) 3rd fast", "en") == "Waves (Left) third fast"

    def test_plus_and_percent(self) -> None:
        """Test plus sign and percent sign are read out."""
        result = normalize("+50%", "en")

        assert "plus" in result
        assert "fifty percent" in result
        assert result == "plus fifty percent"

    def test_multiplier_forms(self) -> None:
        """Test the different multiplier notations."""
        assert normalize("x3", "en") == "times three"
        assert normalize("2x3", "en") == "two times three"
        assert normalize("3x Fireball", "en") == "three times Fireball"

    def test_dashed_sequence(self) -> None:
        """Test number-dash-number-dash-number sequences."""
        assert normalize("1-2-3", "en") == "one dash two dash three"

    def test_parenthesized_segment(self) -> None:
        """Test numbers inside parentheses are expanded."""
        assert normalize("Soak (2 stacks)", "en") == "Soak (two stacks)"

    def test_aoe_is_spelled_out(self) -> None:
        """Test AoE is uppercased so voices spell it."""
        assert normalize("AoE soon", "en") == "AOE soon"

    def test_english_variants(self) -> None:
        """Test English language tags in any case."""
        assert normalize("4 adds", "EN-us") == "four adds"


class TestNormalizeOtherLanguages:
    """Test normalization outside English."""

    def test_numbers_untouched(self) -> None:
        """Test numerals are kept for non-English text."""
        assert normalize("第3波", "zh") == "第3波"

    def test_symbol_cleanup_applies(self) -> None:
        """Test arrows and underscores are replaced for every language."""
        assert normalize("左 -> 右", "zh") == "左 右"
        assert normalize("boss_name  →  phase_2", "de") == "boss name phase 2"

    def test_empty_text(self) -> None:
        """Test empty text stays empty."""
        assert normalize("", "en") == ""


class TestHelpers:
    """Test language detection and symbol cleanup helpers."""

    def test_is_english(self) -> None:
        """Test English-family detection."""
        assert is_english("en")
        assert is_english("en-GB")
        assert not is_english("zh")
        assert not is_english(None)

    def test_clean_symbols_collapses_whitespace(self) -> None:
        """Test whitespace is collapsed and trimmed."""
        assert clean_symbols("  a <- b  =>  c  ") == "a b c"
