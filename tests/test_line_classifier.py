"""
Tests for the line classifier

Covers: splitting, acknowledgement dropping, command-echo context,
clean_response, has_error_token and LineIndex lookups.
"""

import pytest

from modem_console.telemetry.lines import (
    LineIndex,
    classify_lines,
    clean_response,
    has_error_token,
    is_command_echo,
    split_lines,
)
from modem_console.telemetry.models import RawLine


class TestSplitLines:
    def test_mixed_line_endings_and_blank_lines(self):
        assert split_lines("a\r\nb\rc\n\n  d  \n") == ["a", "b", "c", "d"]

    def test_non_string_input(self):
        assert split_lines(None) == []
        assert split_lines(42) == []


class TestCommandEcho:
    @pytest.mark.parametrize("line", ["AT+CSQ", "AT^DEBUG?", "AT$QCSIMSTAT?", 'AT+QENG="servingcell"', "ATI", "ATE0", "AT"])
    def test_echo_lines(self, line):
        assert is_command_echo(line)

    @pytest.mark.parametrize("line", ["+CSQ: 20,99", "ATTENTION", "OK", "RAT:LTE", "at+csq"])
    def test_non_echo_lines(self, line):
        assert not is_command_echo(line)


class TestClassifyLines:
    def test_lines_carry_preceding_echo(self):
        blob = 'AT+CSQ\r\n+CSQ: 20,99\r\nOK\r\nAT+COPS?\r\n+COPS: 0,0,"Carrier",7\r\nOK'
        lines = classify_lines(blob)

        assert lines == [
            RawLine(text="+CSQ: 20,99", originating_command="AT+CSQ"),
            RawLine(text='+COPS: 0,0,"Carrier",7', originating_command="AT+COPS?"),
        ]

    def test_echo_lines_are_not_emitted(self):
        lines = classify_lines("AT^DEBUG?\nRAT:LTE")
        assert [line.text for line in lines] == ["RAT:LTE"]

    def test_lines_before_first_echo_have_no_context(self):
        lines = classify_lines("TSENS: 40C\nAT+CPIN?\n+CPIN: READY")
        assert lines[0].originating_command is None
        assert lines[1].originating_command == "AT+CPIN?"

    def test_ack_only_response(self):
        assert classify_lines("OK") == []
        assert classify_lines("\r\nOK\r\n") == []

    def test_empty_and_invalid_input(self):
        assert classify_lines("") == []
        assert classify_lines(None) == []

    def test_lines_are_trimmed(self):
        lines = classify_lines("   +CSQ: 20,99   ")
        assert lines[0].text == "+CSQ: 20,99"


class TestCleanResponse:
    def test_keeps_echo_drops_ack(self):
        assert clean_response("AT+CSQ\r\n+CSQ: 20,99\r\n\r\nOK\r\n") == "AT+CSQ\n+CSQ: 20,99"

    def test_none(self):
        assert clean_response(None) == ""


class TestErrorToken:
    def test_detects_error_anywhere(self):
        assert has_error_token("AT+CPIN?\r\nERROR")
        assert has_error_token("+CME ERROR: 10")

    def test_no_error(self):
        assert not has_error_token("+CSQ: 20,99\nOK")
        assert not has_error_token(None)


class TestLineIndex:
    @pytest.fixture
    def index(self):
        return LineIndex(classify_lines("AT+CPIN?\n+CPIN: READY\nAT^DEBUG?\nRAT:LTE\nPA: 38C\nPA: 39C"))

    def test_first_containing(self, index):
        assert index.first_containing("READY") == "+CPIN: READY"
        assert index.first_containing("missing") is None

    def test_all_containing(self, index):
        assert index.all_containing("PA:") == ["PA: 38C", "PA: 39C"]

    def test_first_starting(self, index):
        assert index.first_starting("RAT:") == "RAT:LTE"
        assert index.first_starting("LTE") is None

    def test_any_containing(self, index):
        assert index.any_containing("RAT:")
        assert not index.any_containing("nr_band:")

    def test_from_command(self, index):
        debug_lines = index.from_command("DEBUG")
        assert [line.text for line in debug_lines] == ["RAT:LTE", "PA: 38C", "PA: 39C"]

    def test_len_and_texts(self, index):
        assert len(index) == 4
        assert index.texts()[0] == "+CPIN: READY"
