"""
Tests for pattern derivation.
"""

import pytest

from msku_resolver.resolution.patterns import (
    AFFIX_CONFIDENCE,
    COLOR_TERMS,
    PRODUCT_NAME_CONFIDENCE,
    SIZE_TERMS,
    VARIANT_CONFIDENCE,
    Pattern,
    PatternKind,
    build_patterns,
    derive_group_patterns,
    longest_common_prefix,
    longest_common_suffix,
)
from msku_resolver.resolution.resolution_engine import Mapping


class TestCommonAffixes:
    """Tests for longest_common_prefix / longest_common_suffix."""

    def test_prefix_shared(self) -> None:
        """Test a shared prefix is found."""
        assert longest_common_prefix(["widget-blue", "widget-red"]) == "widget-"

    def test_prefix_none(self) -> None:
        """Test strings without a shared prefix."""
        assert longest_common_prefix(["widget-blue", "blue-w"]) == ""

    def test_prefix_empty_input(self) -> None:
        assert longest_common_prefix([]) == ""

    def test_suffix_shared(self) -> None:
        """Test a shared suffix is found."""
        assert longest_common_suffix(["alpha-kit", "bravo-kit"]) == "-kit"

    def test_suffix_none(self) -> None:
        assert longest_common_suffix(["gadget-small", "small-g"]) == ""


class TestPatternMatching:
    """Tests for Pattern.matches per kind."""

    def test_product_name_is_case_insensitive_substring(self) -> None:
        """Test product-name patterns look for the word anywhere in the SKU."""
        pattern = Pattern("APPLE-001", PatternKind.PRODUCT_NAME, "APPLE", PRODUCT_NAME_CONFIDENCE)
        assert pattern.matches("redapple")
        assert pattern.matches("GREEN-APPLE-XL")
        assert not pattern.matches("APPL")

    def test_prefix(self) -> None:
        pattern = Pattern("W-1", PatternKind.PREFIX, "widget-", AFFIX_CONFIDENCE)
        assert pattern.matches("WIDGET-GREEN")
        assert not pattern.matches("my-widget-green")

    def test_suffix(self) -> None:
        pattern = Pattern("K-1", PatternKind.SUFFIX, "-kit", AFFIX_CONFIDENCE)
        assert pattern.matches("Gamma-KIT")
        assert not pattern.matches("kit-gamma")

    def test_variant_terms(self) -> None:
        """Test color and size patterns are substring tests."""
        color = Pattern("W-1", PatternKind.COLOR_VARIANT, "purple", VARIANT_CONFIDENCE)
        size = Pattern("W-1", PatternKind.SIZE_VARIANT, "xl", VARIANT_CONFIDENCE)
        assert color.matches("SHIRT-PURPLE")
        assert size.matches("shirt-xl")
        assert not size.matches("shirt-l")

    def test_to_dict(self) -> None:
        pattern = Pattern("APPLE-001", PatternKind.PRODUCT_NAME, "APPLE", 0.7)
        assert pattern.to_dict() == {
            "msku": "APPLE-001",
            "kind": "product-name",
            "term": "APPLE",
            "confidence": 0.7,
        }


class TestDeriveGroupPatterns:
    """Tests for derive_group_patterns."""

    def test_product_name_only(self) -> None:
        """Test a product-shaped MSKU with dissimilar SKUs yields one pattern."""
        patterns = derive_group_patterns("APPLE-001", ["GOLDEN-APPLE", "GLD"])

        assert patterns == [
            Pattern("APPLE-001", PatternKind.PRODUCT_NAME, "APPLE", PRODUCT_NAME_CONFIDENCE)
        ]

    @pytest.mark.parametrize("msku", ["apple-001", "APPLE001", "APPLE-001-X", "APPLE-"])
    def test_product_name_requires_whole_msku_shape(self, msku: str) -> None:
        """Test MSKUs not shaped like WORD-DIGITS get no product-name pattern."""
        patterns = derive_group_patterns(msku, ["GOLDEN-APPLE", "GLD"])
        assert all(p.kind != PatternKind.PRODUCT_NAME for p in patterns)

    def test_prefix_and_suffix_are_lowercase(self) -> None:
        """Test affix terms are derived from lowercased SKUs."""
        patterns = derive_group_patterns("M100", ["AB-KIT", "AB-PRO-KIT"])

        assert Pattern("M100", PatternKind.PREFIX, "ab-", AFFIX_CONFIDENCE) in patterns
        assert Pattern("M100", PatternKind.SUFFIX, "-kit", AFFIX_CONFIDENCE) in patterns

    def test_short_affixes_are_dropped(self) -> None:
        """Test prefixes/suffixes shorter than three characters are ignored."""
        assert derive_group_patterns("M100", ["ab1", "ab2"]) == []

    def test_three_character_prefix_kept(self) -> None:
        patterns = derive_group_patterns("M100", ["ab-1", "ab-2"])
        assert [p.term for p in patterns] == ["ab-"]

    def test_variant_term_emits_full_vocabulary(self) -> None:
        """Test one color term in the group emits every color and size term."""
        patterns = derive_group_patterns("M100", ["shirt-red", "tee"])

        colors = [p.term for p in patterns if p.kind == PatternKind.COLOR_VARIANT]
        sizes = [p.term for p in patterns if p.kind == PatternKind.SIZE_VARIANT]
        assert colors == list(COLOR_TERMS)
        assert sizes == list(SIZE_TERMS)
        assert len(patterns) == 15
        assert all(p.confidence == VARIANT_CONFIDENCE for p in patterns)

    def test_emission_order(self) -> None:
        """Test product-name, prefix, suffix, then variants."""
        patterns = derive_group_patterns("SHIRT-001", ["shirt-red-tee", "shirt-blue-tee"])

        kinds = [p.kind for p in patterns[:3]]
        assert kinds == [PatternKind.PRODUCT_NAME, PatternKind.PREFIX, PatternKind.SUFFIX]
        assert patterns[3].kind == PatternKind.COLOR_VARIANT
        assert patterns[-1].kind == PatternKind.SIZE_VARIANT


class TestBuildPatterns:
    """Tests for build_patterns over a mapping set."""

    def test_single_member_groups_produce_nothing(self) -> None:
        mappings = [
            Mapping("GOLDEN-APPLE", "APPLE-001", "Amazon"),
            Mapping("REDAPPLE", "APPLE-002", "Amazon"),
        ]
        assert build_patterns(mappings) == []

    def test_groups_in_first_appearance_order(self) -> None:
        """Test groups are emitted in order of first MSKU appearance."""
        mappings = [
            Mapping("PEAR-A", "PEAR-001", "Amazon"),
            Mapping("GOLDEN-APPLE", "APPLE-001", "Amazon"),
            Mapping("GLD", "APPLE-001", "Shopify"),
            Mapping("PEAR-B", "PEAR-001", "Shopify"),
        ]

        patterns = build_patterns(mappings)

        assert [p.msku for p in patterns if p.kind == PatternKind.PRODUCT_NAME] == [
            "PEAR-001",
            "APPLE-001",
        ]

    def test_group_spans_marketplaces(self) -> None:
        """Test grouping is by MSKU only."""
        mappings = [
            Mapping("GOLDEN-APPLE", "APPLE-001", "Amazon"),
            Mapping("GLD", "APPLE-001", "Shopify"),
        ]
        assert len(build_patterns(mappings)) == 1
