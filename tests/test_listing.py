from projkit.listing import ToolInfo, format_tools


def _tools():
    return {
        "ruff": ToolInfo("0.1.0", ["ruff"]),
        "black": ToolInfo("23.1", ["blackd", "black"]),
    }


def test_names_sorted():
    assert format_tools(_tools()) == ["black", "ruff"]


def test_show_version():
    assert format_tools(_tools(), show_version=True) == ["black 23.1", "ruff 0.1.0"]


def test_include_scripts_sorted_and_indented():
    assert format_tools(_tools(), include_scripts=True) == [
        "black",
        "  black",
        "  blackd",
        "ruff",
        "  ruff",
    ]


def test_empty():
    assert format_tools({}, include_scripts=True, show_version=True) == []


def test_scripts_not_mutated():
    tools = _tools()
    format_tools(tools, include_scripts=True)
    assert tools["black"].scripts == ["blackd", "black"]