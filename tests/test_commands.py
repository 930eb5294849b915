import pytest

from yantra.commands import SlashCommand, help_text, is_valid_command, parse_slash_command


def test_plain_text_is_not_a_command():
    assert parse_slash_command("hello there") is None


def test_name_and_args():
    cmd = parse_slash_command("/new my session")
    assert cmd == SlashCommand(name="new", args="my session")


def test_name_is_lowercased():
    cmd = parse_slash_command("/HELP")
    assert cmd.name == "help"
    assert cmd.args == ""


def test_surrounding_whitespace_is_trimmed():
    cmd = parse_slash_command("   /switch   abc123   ")
    assert cmd.name == "switch"
    assert cmd.args == "abc123"


@pytest.mark.parametrize("name", ["new", "sessions", "switch", "cancel", "clear", "help", "quit"])
def test_valid_commands(name):
    assert is_valid_command(name) is True


@pytest.mark.parametrize("name", ["exit", "", "HELP"])
def test_invalid_commands(name):
    assert is_valid_command(name) is False


def test_parsed_names_are_valid():
    for line in help_text().splitlines():
        stripped = line.strip()
        if stripped.startswith("/"):
            cmd = parse_slash_command(stripped.split()[0])
            assert is_valid_command(cmd.name)


def test_help_text_header():
    text = help_text()
    assert text.startswith("Available commands:")
    assert "  /quit           Exit the TUI" in text