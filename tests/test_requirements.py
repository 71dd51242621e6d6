import json
import sys

import pytest
from packaging.requirements import Requirement
from packaging.specifiers import SpecifierSet

from projkit.requirements import (
    PackageMatch,
    Pin,
    ReqExtras,
    RequirementError,
    check_single_requirement,
    choose_operator,
    find_best_matches,
    format_requirement,
    make_requirements,
    parse_matches,
    parse_tool_requirement,
    pin_requirement,
)


@pytest.mark.parametrize(
    "alias, expected",
    [
        ("exact", Pin.EQUAL),
        ("==", Pin.EQUAL),
        ("eq", Pin.EQUAL),
        ("tilde", Pin.TILDE_EQUAL),
        ("compatible", Pin.TILDE_EQUAL),
        ("~=", Pin.TILDE_EQUAL),
        (">=", Pin.GREATER_THAN_EQUAL),
        ("ge", Pin.GREATER_THAN_EQUAL),
        ("gte", Pin.GREATER_THAN_EQUAL),
        ("greater-than-equal", Pin.GREATER_THAN_EQUAL),
    ],
)
def test_pin_aliases(alias, expected):
    assert Pin.parse(alias) is expected


def test_pin_unknown():
    with pytest.raises(ValueError):
        Pin.parse("<")


def test_has_specifiers():
    assert not ReqExtras().has_specifiers()
    assert ReqExtras(features=["x"]).has_specifiers()
    assert ReqExtras(git="https://example.com/repo.git").has_specifiers()


def test_conflicting_sources_rejected():
    with pytest.raises(RequirementError):
        ReqExtras(git="https://example.com/a.git", url="https://example.com/a.tar.gz")
    with pytest.raises(RequirementError):
        ReqExtras(tag="v1")
    with pytest.raises(RequirementError):
        ReqExtras(git="https://example.com/a.git", tag="v1", rev="abc")


def test_git_with_rev():
    req = Requirement("flask")
    ReqExtras(git="https://example.com/repo.git", rev="v1").apply_to_requirement(req)
    assert req.url == "git+https://example.com/repo.git@v1"


def test_git_without_ref():
    req = Requirement("flask")
    ReqExtras(git="https://example.com/repo.git").apply_to_requirement(req)
    assert req.url.startswith("git+")
    assert "@" not in req.url


def test_url_conflicts_with_version():
    req = Requirement("flask==2.2.3")
    with pytest.raises(RequirementError, match="already has a version marker"):
        ReqExtras(url="https://example.com/flask.tar.gz").apply_to_requirement(req)


def test_invalid_url():
    with pytest.raises(RequirementError, match="as url"):
        ReqExtras(url="not a url").apply_to_requirement(Requirement("flask"))


def test_relative_path(tmp_path):
    req = Requirement("mylib")
    ReqExtras(path="lib/mylib").apply_to_requirement(req, cwd=tmp_path)
    assert req.url == "file:///${PROJECT_ROOT}/lib/mylib"


def test_absolute_path(tmp_path):
    req = Requirement("mylib")
    extras = ReqExtras(path="lib/mylib")
    extras.force_absolute()
    extras.apply_to_requirement(req, cwd=tmp_path)
    assert req.url == (tmp_path / "lib" / "mylib").as_uri()


def test_hatchling_forces_absolute(tmp_path):
    req = Requirement("mylib")
    ReqExtras(path="mylib").apply_to_requirement(req, hatchling=True, cwd=tmp_path)
    assert req.url == (tmp_path / "mylib").as_uri()


def test_features_are_merged():
    req = Requirement("flask[async]")
    ReqExtras(features=["dotenv, async", "async"]).apply_to_requirement(req)
    assert req.extras == {"async", "dotenv"}


@pytest.mark.parametrize(
    "version, default, expected",
    [
        ("1.0+local", Pin.TILDE_EQUAL, "=="),
        ("2", Pin.TILDE_EQUAL, ">="),
        ("2.2.3", Pin.TILDE_EQUAL, "~="),
        ("2.2.3", Pin.EQUAL, "=="),
        ("2", ">=", ">="),
    ],
)
def test_choose_operator(version, default, expected):
    assert choose_operator(version, default) == expected


def test_pin_requirement_sets_specifier():
    req = pin_requirement(Requirement("flask"), "2.2.3", Pin.TILDE_EQUAL)
    assert req.specifier == SpecifierSet("~=2.2.3")


def test_pin_requirement_keeps_existing():
    req = pin_requirement(Requirement("flask<3"), "2.2.3", Pin.EQUAL)
    assert req.specifier == SpecifierSet("<3")


def test_pin_requirement_invalid_version():
    with pytest.raises(RequirementError, match="invalid version"):
        pin_requirement(Requirement("flask"), "not-a-version", Pin.EQUAL)


def test_parse_matches():
    data = json.dumps(
        [
            {"name": "Flask", "version": "2.2.3", "link": {"requires_python": ">=3.7"}},
            {"name": "Flask", "version": None, "link": None},
        ]
    )
    assert parse_matches(data) == [
        PackageMatch("Flask", "2.2.3", ">=3.7"),
        PackageMatch("Flask", None, None),
    ]


def test_parse_matches_bad_json():
    with pytest.raises(RequirementError):
        parse_matches("{broken")


def test_find_best_matches_missing_python(tmp_path):
    with pytest.raises(RequirementError, match="failed to resolve package"):
        find_best_matches(
            tmp_path / "no-python",
            "3.11",
            Requirement("flask"),
            {"index_urls": [], "find_links": [], "trusted_hosts": []},
        )


def test_make_requirements_round_trip():
    rendered = make_requirements(["flask==2.2.3"], ReqExtras(features=["async"]))
    assert len(rendered) == 1
    parsed = Requirement(rendered[0])
    assert parsed.name == "flask"
    assert parsed.extras == {"async"}
    assert parsed.specifier == SpecifierSet("==2.2.3")


def test_make_requirements_invalid():
    with pytest.raises(RequirementError, match="unable to parse requirement"):
        make_requirements(["flask ==="])


def test_format_requirement_round_trip():
    req = Requirement("flask[async]>=2.0")
    assert Requirement(format_requirement(req)).specifier == req.specifier


def test_parse_tool_requirement():
    assert parse_tool_requirement("black==23.1", local_hint=True).name == "black"


def test_parse_tool_requirement_url_hint():
    with pytest.raises(RequirementError, match="--url or --git"):
        parse_tool_requirement("https://example.com/pkg", local_hint=True)


def test_parse_tool_requirement_no_hint():
    with pytest.raises(RequirementError) as info:
        parse_tool_requirement("https://example.com/pkg", local_hint=False)
    assert "--url" not in str(info.value)


def test_check_single_requirement():
    with pytest.raises(RequirementError, match="expected one requirement"):
        check_single_requirement(ReqExtras(features=["x"]), ["a", "b"])
    check_single_requirement(ReqExtras(), ["a", "b"])
    assert sys.version_info >= (3, 10)