"""Tests for quantity parsing and formatting."""

from __future__ import annotations

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kubehealth.analysis.quantity import format_cpu, format_memory, parse_quantity

# ---------------------------------------------------------------------------
# parse_quantity
# ---------------------------------------------------------------------------


class TestParseQuantity:
    def test_millicores(self) -> None:
        assert parse_quantity("100m") == 0.1

    def test_gibibytes(self) -> None:
        assert parse_quantity("1Gi") == 1024**3

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2", 2.0),
            ("0.5", 0.5),
            ("250m", 0.25),
            ("500000000n", 0.5),
            ("64Ki", 64 * 1024),
            ("256Mi", 256 * 1024**2),
            ("2Ti", 2 * 1024**4),
            ("1k", 1_000),
            ("128M", 128_000_000),
            ("1G", 1_000_000_000),
        ],
    )
    def test_suffixes(self, text: str, expected: float) -> None:
        assert parse_quantity(text) == pytest.approx(expected)

    def test_milli_and_mega_are_distinct(self) -> None:
        """'m' is milli and 'M' is mega; the suffix match is case-sensitive."""
        assert parse_quantity("1m") == pytest.approx(0.001)
        assert parse_quantity("1M") == 1_000_000

    @pytest.mark.parametrize("text", ["", "abc", "Mi", "m", "--1"])
    def test_malformed_input_is_nan(self, text: str) -> None:
        assert math.isnan(parse_quantity(text))

    @given(st.integers(min_value=0, max_value=10**6))
    def test_binary_suffix_scales_linearly(self, n: int) -> None:
        assert parse_quantity(f"{n}Mi") == n * 1024**2

    @given(st.integers(min_value=0, max_value=10**6))
    def test_milli_suffix_scales_linearly(self, n: int) -> None:
        assert parse_quantity(f"{n}m") == pytest.approx(n / 1000)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatCpu:
    @pytest.mark.parametrize(
        ("cores", "expected"),
        [
            (0.15, "150m"),
            (0.3, "300m"),
            (0.0005, "1m"),
            (1.35, "1.35"),
            (2.0, "2"),
            (2.7, "2.7"),
        ],
    )
    def test_format(self, cores: float, expected: str) -> None:
        assert format_cpu(cores) == expected


class TestFormatMemory:
    @pytest.mark.parametrize(
        ("num_bytes", "expected"),
        [
            (512, "512"),
            (2048, "2Ki"),
            (100 * 1024**2, "100Mi"),
            (1024**3, "1Gi"),
            (1.5 * 1024**3, "2Gi"),
            (3 * 1024**4, "3Ti"),
        ],
    )
    def test_format(self, num_bytes: float, expected: str) -> None:
        assert format_memory(num_bytes) == expected

    def test_rounds_half_up(self) -> None:
        assert format_memory(2.5 * 1024**2) == "3Mi"
