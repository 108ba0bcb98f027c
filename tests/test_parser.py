import logging
from dataclasses import dataclass, field
from typing import Optional

import pytest
from result import Err, Ok

from cliarg import (
    NO_MATCH,
    CLIParser,
    CLISpec,
    Property,
    SpecError,
    ValueCoercer,
    parse_args,
)


@dataclass
class NameCount:
    """Required option plus an optional positional."""

    name: str = field(metadata={"help": "Who to greet", "short": "n"})
    count: int = field(default=1, metadata={"help": "How many times", "index": 0})


@dataclass
class Flags:
    verbose: bool = field(default=False, metadata={"help": "Chatty output", "short": "v"})
    dry_run: Optional[bool] = field(default=None)


class Record:
    def __init__(self) -> None:
        self.id = 7
        self.label = "unset"


RECORD_SPEC = (
    CLISpec.builder(Record)
    .option("id", int, required=True)
    .option("label", str)
    .build()
)


@dataclass
class Copy:
    source: str = field(metadata={"index": 0})
    dest: str = field(metadata={"index": 1})
    force: bool = field(default=False, metadata={"short": "f"})


class TestScenarios:
    """End-to-end parses covering the main token forms."""

    def test_inline_option_and_positional(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["--name=Bob", "42"])
        assert parser.target.name == "Bob"
        assert parser.target.count == 42
        assert not parser.has_error()
        assert parser.get_errors_as_string() == ""

    def test_boolean_switch_leaves_next_token(self):
        parser = parse_args(CLISpec.from_dataclass(Flags), ["--verbose", "extra"])
        assert parser.target.verbose is True
        assert parser.extra_args == ["extra"]
        assert parser.has_error()

    def test_malformed_value_is_recorded(self):
        parser = parse_args(RECORD_SPEC, ["--id=abc"])
        assert "id" in parser.error_messages
        assert parser.missing_params == []
        assert parser.target.id == 7
        assert parser.has_error()

    def test_empty_spec_rejects_everything(self):
        spec = CLISpec.builder(Record).build()
        target = Record()
        parser = parse_args(spec, ["foo", "bar"], target=target)
        assert parser.extra_args == ["foo", "bar"]
        assert parser.missing_params == []
        assert parser.error_messages == {}
        assert parser.target is target
        assert (target.id, target.label) == (7, "unset")


class TestBooleanOptions:
    @pytest.mark.parametrize(
        "args,expected",
        [
            (["--verbose=true"], True),
            (["--verbose=false"], False),
            (["--verbose", "true"], True),
            (["--verbose", "false"], False),
            (["-v", "false"], False),
            (["--verbose"], True),
        ],
    )
    def test_explicit_and_implicit_values(self, args, expected):
        parser = parse_args(CLISpec.from_dataclass(Flags), args)
        assert parser.target.verbose is expected
        assert not parser.has_error()

    def test_inline_value_does_not_touch_next_token(self):
        parser = parse_args(CLISpec.from_dataclass(Flags), ["--verbose=false", "false"])
        assert parser.target.verbose is False
        assert parser.extra_args == ["false"]

    @pytest.mark.parametrize("literal", ["True", "FALSE", "1", "yes"])
    def test_other_spellings_are_not_consumed(self, literal):
        parser = parse_args(CLISpec.from_dataclass(Flags), ["--verbose", literal])
        assert parser.target.verbose is True
        assert parser.extra_args == [literal]

    def test_next_option_is_parsed_independently(self):
        parser = parse_args(CLISpec.from_dataclass(Flags), ["--verbose", "--dry_run"])
        assert parser.target.verbose is True
        assert parser.target.dry_run is True
        assert not parser.has_error()

    def test_flag_before_positional(self):
        parser = parse_args(CLISpec.from_dataclass(Copy), ["-f", "a.txt", "b.txt"])
        assert parser.target.force is True
        assert parser.target.source == "a.txt"
        assert parser.target.dest == "b.txt"
        assert not parser.has_error()


class TestOptions:
    def test_short_alias(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["-n", "Ann"])
        assert parser.target.name == "Ann"
        assert parser.missing_params == []

    def test_long_name_with_single_dash(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["-name", "Ann"])
        assert parser.target.name == "Ann"

    def test_value_split_on_first_equals(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["--name=a=b"])
        assert parser.target.name == "a=b"

    def test_next_token_is_taken_verbatim(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["--name", "-x"])
        assert parser.target.name == "-x"
        assert not parser.has_error()

    def test_unknown_option_value_is_reexamined(self):
        parser = parse_args(
            CLISpec.from_dataclass(NameCount), ["--name", "Bob", "--color", "5"]
        )
        assert parser.extra_args == ["color"]
        assert parser.target.count == 5

    def test_unknown_option_with_inline_value(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["--name=x", "--size=3"])
        assert parser.extra_args == ["size"]

    def test_missing_value_at_end(self):
        parser = parse_args(RECORD_SPEC, ["--id", "3", "--label"])
        assert parser.target.id == 3
        assert parser.target.label == "unset"
        assert parser.error_messages == {"label": "Missing value"}
        assert parser.arg_index == 3

    def test_last_value_wins(self):
        parser = parse_args(RECORD_SPEC, ["--id", "1", "--id=2"])
        assert parser.target.id == 2
        assert not parser.has_error()


class TestPositionals:
    def test_overflow_is_captured_in_order(self):
        parser = parse_args(
            CLISpec.from_dataclass(Copy), ["a", "b", "c", "-f", "d", "e"]
        )
        assert (parser.target.source, parser.target.dest) == ("a", "b")
        assert parser.extra_args == ["c", "d", "e"]
        assert parser.param_index == 2

    def test_missing_positional_reported(self):
        parser = parse_args(CLISpec.from_dataclass(Copy), ["a"])
        assert parser.missing_params == ["dest"]
        assert parser.target.dest is None

    def test_bad_positional_still_consumes_slot(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), ["-n", "x", "many", "3"])
        assert "count" in parser.error_messages
        assert parser.target.count == 1
        assert parser.extra_args == ["3"]


class TestErrorReport:
    def test_missing_required_listed_once(self):
        parser = parse_args(
            CLISpec.from_dataclass(Copy), ["--nope", "--nope", "--force=true"]
        )
        assert parser.missing_params == ["source", "dest"]
        assert parser.extra_args == ["nope", "nope"]

    def test_all_sections_in_order(self):
        parser = parse_args(
            CLISpec.from_dataclass(NameCount), ["x", "--bogus"]
        )
        assert parser.get_errors_as_string() == (
            "Missing required arguments: name\n"
            "Unexpected arguments: bogus\n"
            "Error parsing following arguments: count: "
            + parser.error_messages["count"]
        )

    def test_only_nonempty_sections(self):
        parser = parse_args(CLISpec.from_dataclass(NameCount), [])
        assert parser.get_errors_as_string() == "Missing required arguments: name"

    def test_failure_is_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="cliarg.parser"):
            parse_args(RECORD_SPEC, ["--id", "abc"])
        assert "Error parsing parameter: id" in caplog.text

    def test_to_result(self):
        ok = parse_args(CLISpec.from_dataclass(NameCount), ["-n", "Bob"]).to_result()
        assert isinstance(ok, Ok)
        assert ok.ok_value.name == "Bob"

        err = parse_args(CLISpec.from_dataclass(NameCount), []).to_result()
        assert isinstance(err, Err)
        assert "Missing required arguments: name" in err.err_value


class TestSession:
    def test_start_offset_skips_leading_tokens(self):
        parser = parse_args(
            CLISpec.from_dataclass(NameCount), ["prog", "--name", "Bob"], 1
        )
        assert parser.target.name == "Bob"
        assert not parser.has_error()

    def test_offset_past_end(self):
        parser = parse_args(CLISpec.from_dataclass(Flags), ["--verbose"], 5)
        assert parser.target.verbose is False
        assert parser.arg_index == 5

    @pytest.mark.parametrize(
        "args",
        [
            [],
            ["a"],
            ["a", "b", "c", "d"],
            ["--force", "true", "x"],
            ["-f", "--unknown", "y", "z", "w"],
        ],
    )
    def test_cursors_stay_in_bounds(self, args):
        spec = CLISpec.from_dataclass(Copy)
        parser = CLIParser(spec, args)
        assert parser.arg_index == 0
        parser.parse()
        assert parser.arg_index == len(args)
        assert parser.param_index <= len(spec.indexed_params)

    def test_supplied_target_is_mutated_in_place(self):
        target = Record()
        parser = CLIParser(RECORD_SPEC, ["--id", "9"], target=target).parse()
        assert parser.target is target
        assert target.id == 9

    def test_default_instance_failure_raised_before_parsing(self):
        class NeedsArgs:
            def __init__(self, value):
                self.value = value

        spec = CLISpec.builder(NeedsArgs).option("value", int).build()
        with pytest.raises(SpecError):
            CLIParser(spec, ["--value", "1"])

    def test_sessions_do_not_share_state(self):
        spec = CLISpec.from_dataclass(NameCount)
        first = parse_args(spec, ["--bad"])
        second = parse_args(spec, ["-n", "ok"])
        assert first.extra_args == ["bad"]
        assert second.extra_args == []
        assert first.target is not second.target

    def test_mapping_target(self):
        spec = (
            CLISpec.builder(dict)
            .option("name", property=Property.item("name", str))
            .indexed("size", property=Property.item("size", int))
            .build()
        )
        parser = parse_args(spec, ["--name", "box", "12"])
        assert parser.target == {"name": "box", "size": 12}

    def test_custom_coercer(self):
        def shout(text, arg_type):
            return text.upper() if arg_type is str else NO_MATCH

        coercer = ValueCoercer().register(shout, first=True)
        parser = parse_args(
            CLISpec.from_dataclass(NameCount), ["-n", "bob", "2"], coercer=coercer
        )
        assert parser.target.name == "BOB"
        assert parser.target.count == 2
