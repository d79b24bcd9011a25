"""Tests for display text normalization."""

from gtfs_feed.normalizers.text import to_half_width, to_half_width_or_none


class TestToHalfWidth:
    """Tests for full-width to half-width conversion."""

    def test_letters_and_digits(self) -> None:
        """Test full-width alphanumerics become ASCII."""
        assert to_half_width("ＡＢＣａｂｃ０１２") == "ABCabc012"

    def test_ascii_unchanged(self) -> None:
        """Test ASCII text is left alone."""
        assert to_half_width("Route 12") == "Route 12"

    def test_other_full_width_symbols_kept(self) -> None:
        """Test only alphanumerics and parentheses are converted."""
        assert to_half_width("Ｎｏ．１") == "No．1"

    def test_parentheses_spaced(self) -> None:
        """Test full-width parentheses convert with spacing around them."""
        assert to_half_width("東京駅（八重洲口）行") == "東京駅 (八重洲口) 行"

    def test_parentheses_existing_space(self) -> None:
        """Test no extra space is added when one is already there."""
        assert to_half_width("Line （Express） A") == "Line (Express) A"

    def test_parentheses_at_end(self) -> None:
        """Test a trailing group only gains a leading space."""
        assert to_half_width("Ｈａｒｂｏｕｒ Line（快速）") == "Harbour Line (快速)"

    def test_several_groups(self) -> None:
        """Test each parenthesised group is converted."""
        assert to_half_width("Ａ（１）Ｂ（２）") == "A (1) B (2)"

    def test_empty(self) -> None:
        """Test empty string."""
        assert to_half_width("") == ""

    def test_none_passthrough(self) -> None:
        """Test None is passed through."""
        assert to_half_width_or_none(None) is None
        assert to_half_width_or_none("Ｘ") == "X"
