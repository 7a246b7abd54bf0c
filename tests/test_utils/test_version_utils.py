from __future__ import annotations

import pytest
from semantic_version import Version

from enginekeeper.exceptions import MalformedVersionError
from enginekeeper.utils.version_utils import (
    extract_base_version,
    get_update_type,
    is_canonical_version,
    normalize_range,
    parse_range,
    parse_version,
    sort_versions,
    try_parse_version,
)


@pytest.mark.unit
class TestIsCanonicalVersion:
    @pytest.mark.parametrize("version", ["0.0.1", "1.2.3", "10.20.30"])
    def test_canonical(self, version: str) -> None:
        assert is_canonical_version(version)

    @pytest.mark.parametrize(
        "version", ["1.2.3-beta.1", "1.2.3+build", "1.2", "v1.2.3", "", "1.2.3 "]
    )
    def test_not_canonical(self, version: str) -> None:
        assert not is_canonical_version(version)


@pytest.mark.unit
class TestParseVersion:
    """Tests for strict semantic version parsing."""

    def test_valid(self) -> None:
        assert parse_version("1.2.3") == Version("1.2.3")

    def test_prerelease(self) -> None:
        assert parse_version("2.0.0-rc.1").prerelease == ("rc", "1")

    @pytest.mark.parametrize("value", ["1.2", "v1.2.3", "latest", ""])
    def test_invalid_raises(self, value: str) -> None:
        with pytest.raises(MalformedVersionError) as exc_info:
            parse_version(value)

        assert exc_info.value.details["version"] == value

    def test_try_parse_returns_none(self) -> None:
        assert try_parse_version("nope") is None


@pytest.mark.unit
class TestSortVersions:
    """Tests for semantic ordering."""

    def test_numeric_not_lexical(self) -> None:
        assert sort_versions(["1.10.0", "1.2.0", "1.9.0"]) == ["1.2.0", "1.9.0", "1.10.0"]

    def test_prerelease_before_release(self) -> None:
        assert sort_versions(["1.0.0", "1.0.0-beta.2", "1.0.0-alpha"]) == [
            "1.0.0-alpha",
            "1.0.0-beta.2",
            "1.0.0",
        ]

    def test_build_metadata_tie_is_deterministic(self) -> None:
        forward = sort_versions(["1.0.0+b", "1.0.0+a"])
        backward = sort_versions(["1.0.0+a", "1.0.0+b"])

        assert forward == backward

    def test_malformed_raises(self) -> None:
        with pytest.raises(MalformedVersionError):
            sort_versions(["1.0.0", "one"])

    def test_empty(self) -> None:
        assert sort_versions([]) == []


@pytest.mark.unit
class TestNormalizeRange:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (">= 10.0.0", ">=10.0.0"),
            ("^v4.2", "^4.2"),
            (">=v4", ">=4"),
            ("  >=8   <  12 ", ">=8 <12"),
            ("^12 || ^14", "^12 || ^14"),
            ("*", "*"),
            ("V12", "V12"),
            (">=V4", ">=V4"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_range(raw) == expected


@pytest.mark.unit
class TestParseRange:
    """Tests for npm range parsing."""

    @pytest.mark.parametrize(
        "expression,version,expected",
        [
            (">=10", "12.0.0", True),
            (">=10", "8.17.0", False),
            ("^14.13.1 || >=16", "14.13.0", False),
            ("^14.13.1 || >=16", "17.1.0", True),
            ("~0.10", "0.10.48", True),
            ("0.8.x", "0.8.28", True),
            ("*", "4.0.0", True),
            (">= 6.9.0", "6.9.0", True),
        ],
    )
    def test_matches(self, expression: str, version: str, expected: bool) -> None:
        spec = parse_range(expression)

        assert spec is not None
        assert spec.match(Version(version)) == expected

    @pytest.mark.parametrize(
        "expression", ["node >= 4", ">=abc", "1.2.3.4", "V12", ">=V12"]
    )
    def test_invalid_returns_none(self, expression: str) -> None:
        assert parse_range(expression) is None


@pytest.mark.unit
class TestExtractBaseVersion:
    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("4.17.21", "4.17.21"),
            ("^4.17.21", "4.17.21"),
            ("~1.2.3", "1.2.3"),
            (">=2.0.0", "2.0.0"),
            ("=3.0.0-rc.1", "3.0.0-rc.1"),
            ("v1.0.0", "1.0.0"),
        ],
    )
    def test_simple_specs(self, spec: str, expected: str) -> None:
        assert extract_base_version(spec) == expected

    @pytest.mark.parametrize(
        "spec", [None, "", ">=1 <2", "^1 || ^2", "latest", "github:user/repo", "1.x"]
    )
    def test_complex_specs(self, spec: object) -> None:
        assert extract_base_version(spec) is None  # type: ignore[arg-type]


@pytest.mark.unit
class TestGetUpdateType:
    @pytest.mark.parametrize(
        "current,target,expected",
        [
            (None, "1.0.0", "new"),
            (None, None, "unknown"),
            ("1.0.0", "1.0.0", "same"),
            ("2.0.0", "1.9.9", "downgrade"),
            ("1.0.0", "2.0.0", "major"),
            ("1.0.0", "1.1.0", "minor"),
            ("1.0.0", "1.0.1", "patch"),
            ("1.0.0-rc.1", "1.0.0", "update"),
            ("latest", "1.0.0", "unknown"),
            ("1.0.0", None, "unknown"),
        ],
    )
    def test_update_type(self, current: str, target: str, expected: str) -> None:
        assert get_update_type(current, target) == expected
