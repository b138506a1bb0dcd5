"""Tests for the pipeline DSL parser."""

import pytest

from recpipe.dsl.commands import (
    Change,
    Console,
    Count,
    Duplicate,
    FieldRange,
    FileRead,
    FileWrite,
    Filter,
    Hole,
    Literal,
    Locate,
    Lower,
    NLocate,
    Reverse,
    Select,
    SelectField,
    Skip,
    Take,
    Upper,
)
from recpipe.dsl.core import Pipeline
from recpipe.dsl.parser import (
    PipelineParser,
    parse_pipeline,
    parse_pipeline_file,
    parse_pipelines,
)
from recpipe.recpipe_exceptions import ParseError


# ============================================================
# Structure
# ============================================================

class TestPipelineStructure:
    def test_single_line(self):
        pipeline = parse_pipeline('PIPE CONSOLE | FILTER 18,10 = "SALES" | CONSOLE')
        assert pipeline.source == Console()
        assert pipeline.sink == Console()
        assert pipeline.stages == (Filter(offset=18, length=10, value="SALES"),)

    def test_continuation_lines(self):
        text = """
        PIPE CONSOLE
           | LOCATE /SALES/
           | UPPER
           | CONSOLE
        ?
        """
        pipeline = parse_pipeline(text)
        assert pipeline.stages == (Locate(pattern="SALES"), Upper())

    def test_keywords_are_case_insensitive(self):
        pipeline = parse_pipeline("pipe console | Upper | lower | reverse | console")
        assert pipeline.stages == (Upper(), Lower(), Reverse())

    def test_implicit_console_source_and_sink(self):
        pipeline = parse_pipeline("UPPER")
        assert pipeline == Pipeline.of(Upper())

    def test_empty_pipeline_is_identity(self):
        pipeline = parse_pipeline("PIPE CONSOLE | CONSOLE")
        assert pipeline.stages == ()
        assert pipeline.stage_count == 0

    def test_middle_console_is_a_stage(self):
        pipeline = parse_pipeline("CONSOLE | CONSOLE | CONSOLE")
        assert pipeline.stages == (Console(),)

    def test_comments_and_blank_lines_skipped(self):
        text = "# header\n\nPIPE CONSOLE\n# in between\n| COUNT\n| CONSOLE\n"
        assert parse_pipeline(text).stages == (Count(),)

    def test_terminator_splits_pipelines(self):
        text = """
        PIPE CONSOLE | LOCATE /SALES/ | CONSOLE
        ?
        PIPE CONSOLE | COUNT | CONSOLE
        ?
        """
        spec = parse_pipelines(text)
        assert len(spec) == 2
        assert spec[0].stages == (Locate(pattern="SALES"),)
        assert spec[1].stages == (Count(),)

    def test_trailing_terminator_on_command_line(self):
        spec = parse_pipelines("UPPER ?\nLOWER ?")
        assert [p.stages for p in spec] == [(Upper(),), (Lower(),)]

    def test_bare_pipe_keyword_line(self):
        spec = parse_pipelines("PIPE\n| UPPER\n| CONSOLE\n?")
        assert spec[0].stages == (Upper(),)

    def test_file_boundaries(self):
        pipeline = parse_pipeline("PIPE < in.txt | UPPER | > out/result.txt")
        assert pipeline.source == FileRead(path="in.txt")
        assert pipeline.sink == FileWrite(path="out/result.txt")
        assert pipeline.stages == (Upper(),)

    def test_commands_carry_line_and_text(self):
        spec = parse_pipelines('PIPE CONSOLE\n| FILTER 18,10 = "SALES"\n| CONSOLE')
        cmd = spec[0].stages[0]
        assert cmd.line == 2
        assert cmd.text == 'FILTER 18,10 = "SALES"'


# ============================================================
# Command arguments
# ============================================================

class TestCommandArguments:
    def test_filter_not_equal(self):
        cmd = parse_pipeline('FILTER 18,10 != "SALES"').stages[0]
        assert cmd == Filter(offset=18, length=10, value="SALES", negate=True)

    def test_filter_quoted_value_keeps_blanks(self):
        cmd = parse_pipeline('FILTER 0,8 = "A B"').stages[0]
        assert cmd.value == "A B"

    def test_locate_custom_delimiter(self):
        assert parse_pipeline("LOCATE ,a/b,").stages[0] == Locate(pattern="a/b")

    def test_locate_with_field(self):
        cmd = parse_pipeline("NLOCATE 18,10 /SALES/").stages[0]
        assert cmd == NLocate(pattern="SALES", field_range=FieldRange(18, 10))

    def test_select_explicit_destinations(self):
        cmd = parse_pipeline("SELECT 18,10,0; 0,8,10").stages[0]
        assert cmd == Select(fields=(SelectField(18, 10, 0), SelectField(0, 8, 10)))

    def test_select_default_destinations_follow_previous_field(self):
        cmd = parse_pipeline("SELECT 0,8; 18,10; 36,8,40; 28,8").stages[0]
        assert [f.as_tuple() for f in cmd.fields] == [
            (0, 8, 0), (18, 10, 8), (36, 8, 40), (28, 8, 48),
        ]

    def test_change(self):
        assert parse_pipeline("CHANGE /SALES/MKTG/").stages[0] == Change(old="SALES", new="MKTG")

    def test_change_to_empty(self):
        assert parse_pipeline("CHANGE :E0:: ").stages[0] == Change(old="E0", new="")

    def test_take_skip_duplicate(self):
        stages = parse_pipeline("TAKE 3 | SKIP 1 | DUPLICATE 4 | DUPLICATE").stages
        assert stages == (Take(count=3), Skip(count=1), Duplicate(copies=4), Duplicate(copies=2))

    def test_literal_and_hole(self):
        stages = parse_pipeline('LITERAL "REPORT" | LITERAL | HOLE').stages
        assert stages == (Literal(value="REPORT"), Literal(value=""), Hole())


# ============================================================
# Errors
# ============================================================

class TestParseErrors:
    def test_unknown_command(self):
        with pytest.raises(ParseError, match="Unknown command: FROB") as exc:
            parse_pipelines("PIPE CONSOLE | FROB")
        assert exc.value.line == 1
        assert exc.value.column == 16

    def test_unknown_command_reports_line(self):
        with pytest.raises(ParseError) as exc:
            parse_pipelines("PIPE CONSOLE\n| UPPER\n| SORT 1,2\n| CONSOLE")
        assert exc.value.line == 3
        assert "Unknown command: SORT" in str(exc.value)

    def test_missing_number(self):
        with pytest.raises(ParseError, match="Missing arguments for TAKE"):
            parse_pipelines("TAKE")

    def test_invalid_number(self):
        with pytest.raises(ParseError) as exc:
            parse_pipelines("SKIP -1")
        assert exc.value.suggestion == "Usage: SKIP n"

    def test_unterminated_pattern(self):
        with pytest.raises(ParseError, match="unterminated LOCATE pattern"):
            parse_pipelines("LOCATE /SALES")

    def test_unterminated_quote(self):
        with pytest.raises(ParseError, match="Unterminated quoted string"):
            parse_pipelines('FILTER 18,10 = "SALES')

    @pytest.mark.parametrize("text", [
        'FILTER 75,10 = "X"',
        'FILTER 0,0 = "X"',
        "LOCATE 79,2 /X/",
        "SELECT 0,81",
        "SELECT 0,10,75",
        "SELECT 0,50; 0,40",
    ])
    def test_range_checked_at_parse_time(self, text):
        with pytest.raises(ParseError) as exc:
            parse_pipelines(text)
        assert exc.value.line == 1

    def test_change_needs_search_text(self):
        with pytest.raises(ParseError, match="non-empty search string"):
            parse_pipelines("CHANGE //X/")

    @pytest.mark.parametrize("text", ["DUPLICATE 0", "DUPLICATE 1"])
    def test_duplicate_needs_two_copies(self, text):
        with pytest.raises(ParseError, match="at least 2 copies") as exc:
            parse_pipelines(text)
        assert exc.value.column == 11

    def test_change_text_must_be_ascii(self):
        with pytest.raises(ParseError, match="CHANGE text must be ASCII") as exc:
            parse_pipelines("PIPE CONSOLE\n| CHANGE /a/é/")
        assert exc.value.line == 2

    def test_file_read_must_be_first(self):
        with pytest.raises(ParseError, match="only valid as the first stage"):
            parse_pipelines("UPPER | < in.txt | CONSOLE")

    def test_file_write_must_be_last(self):
        with pytest.raises(ParseError, match="only valid as the last stage"):
            parse_pipelines("CONSOLE | > out.txt | UPPER")

    @pytest.mark.parametrize("text", ["", "   \n", "# only a comment\n"])
    def test_empty_input(self, text):
        with pytest.raises(ParseError):
            parse_pipelines(text)

    def test_parse_pipeline_rejects_several(self):
        with pytest.raises(ParseError, match="Expected a single pipeline, found 2"):
            parse_pipeline("UPPER\n?\nLOWER\n?")

    def test_parse_result_collects_error(self):
        result = PipelineParser().parse("BOGUS")
        assert not result.success
        assert not result
        assert result.error_count == 1
        assert "BOGUS" in result.errors[0].message

    def test_error_text_includes_context(self):
        with pytest.raises(ParseError) as exc:
            parse_pipelines("PIPE CONSOLE | FROB")
        text = str(exc.value)
        assert text.startswith("Parse error at line 1, column 16")
        assert "Context: PIPE CONSOLE | FROB" in text


class TestParseFile:
    def test_parse_pipeline_file(self, tmp_path):
        path = tmp_path / "sales.pipe"
        path.write_text('PIPE CONSOLE\n| FILTER 18,10 = "SALES"\n| CONSOLE\n?\n', encoding="utf-8")
        spec = parse_pipeline_file(path)
        assert len(spec) == 1

    def test_missing_file(self, tmp_path):
        result = PipelineParser().parse_file(tmp_path / "nope.pipe")
        assert not result.success
        assert "File not found" in result.errors[0].message
