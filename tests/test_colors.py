import pytest

from aurhelper import colors


@pytest.fixture
def colored(monkeypatch):
    monkeypatch.setattr(colors, "use_color", True)


@pytest.fixture
def plain(monkeypatch):
    monkeypatch.setattr(colors, "use_color", False)


def test_red_wraps_in_escape_codes(colored):
    assert colors.red("x") == "\x1b[31mx\x1b[0m"


def test_bold_wraps_in_escape_codes(colored):
    assert colors.bold("x") == "\x1b[1mx\x1b[0m"


@pytest.mark.parametrize(
    "fn, code",
    [
        (colors.red, colors.RED_CODE),
        (colors.green, colors.GREEN_CODE),
        (colors.yellow, colors.YELLOW_CODE),
        (colors.cyan, colors.CYAN_CODE),
        (colors.magenta, colors.MAGENTA_CODE),
        (colors.blue, colors.BLUE_CODE),
        (colors.bold, colors.BOLD_CODE),
    ],
)
def test_styles_prefix_and_reset(colored, fn, code):
    result = fn("hello")
    assert result.startswith(code)
    assert result.endswith(colors.RESET_CODE)
    assert "hello" in result


@pytest.mark.parametrize(
    "fn",
    [colors.red, colors.green, colors.yellow, colors.cyan, colors.magenta, colors.blue, colors.bold],
)
def test_styles_disabled_return_input(plain, fn):
    assert fn("hello") == "hello"


def test_color_hash_known_names(colored):
    assert colors.color_hash("aur") == "\x1b[34maur\x1b[0m"
    assert colors.color_hash("core") == "\x1b[33mcore\x1b[0m"


def test_color_hash_is_stable(colored):
    result = colors.color_hash("extra")
    assert result.startswith("\x1b[")
    assert result.endswith("mextra\x1b[0m")
    code = int(result[2 : result.index("m")])
    assert 31 <= code <= 36
    assert colors.color_hash("extra") == result


def test_color_hash_disabled(plain):
    assert colors.color_hash("aur") == "aur"