"""Tests for command tokenization."""

from shellgate.security.command_parser import (
    ParsedCommand,
    extract_command_name,
    parse_command,
    split_chain,
)


def test_simple_command():
    assert parse_command("ls -la /tmp") == ParsedCommand("ls", ["-la", "/tmp"])


def test_empty_command():
    assert parse_command("") == ParsedCommand("", [])
    assert parse_command("   ") == ParsedCommand("", [])


def test_quotes_group_arguments():
    parsed = parse_command("echo \"hello world\" 'a b' plain")
    assert parsed.executable == "echo"
    assert parsed.args == ["hello world", "a b", "plain"]


def test_quoted_executable_with_spaces():
    parsed = parse_command('"C:\\Program Files\\App\\app.exe" --flag')
    assert parsed.executable == "C:\\Program Files\\App\\app.exe"
    assert parsed.args == ["--flag"]


def test_unquoted_executable_with_spaces_is_rejoined():
    parsed = parse_command("C:\\Program Files\\Git\\bin\\bash.exe -c ls")
    assert parsed.executable == "C:\\Program Files\\Git\\bin\\bash.exe"
    assert parsed.args == ["-c", "ls"]


def test_windows_path_without_suffix_falls_back_to_first_token():
    parsed = parse_command("C:\\tools\\run now")
    assert parsed.executable == "C:\\tools\\run"
    assert parsed.args == ["now"]


def test_extract_command_name():
    assert extract_command_name("C:\\Windows\\System32\\CMD.EXE") == "cmd"
    assert extract_command_name("/usr/bin/rm") == "rm"
    assert extract_command_name("script.bat") == "script"
    assert extract_command_name("tool.cmd") == "tool"
    assert extract_command_name("Get-Process") == "get-process"


def test_parsed_name():
    assert parse_command("C:\\Windows\\del.exe x").name == "del"


def test_split_chain():
    assert split_chain("cd a &&echo x&&  && ls") == ["cd a", "echo x", "ls"]
    assert split_chain("single") == ["single"]
    assert split_chain("echo a\nls -la\r\n\n  pwd") == ["echo a", "ls -la", "pwd"]
