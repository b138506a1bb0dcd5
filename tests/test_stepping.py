"""Tests for the stepping debugger session."""

import pytest

from recpipe.dsl.parser import parse_pipeline
from recpipe.engine import (
    AtFlush,
    AtPipePoint,
    DebugSession,
    Finished,
    NotStarted,
    run_rat,
    step_all,
)
from recpipe.record import Record
from recpipe.recpipe_exceptions import SessionError
from recpipe.stages import MemoryFiles


SALES_UPPER = 'FILTER 18,10 = "SALES" | UPPER'


@pytest.fixture
def session(employees):
    return DebugSession(SALES_UPPER, employees[:2])


class TestStepping:
    def test_starts_not_started(self, session):
        assert session.state == NotStarted()
        snap = session.snapshot()
        assert snap.pipe_point is None
        assert snap.records == ()
        assert snap.output == ()

    def test_initialize_arrives_at_first_pipe_point(self, session, employees):
        snap = session.initialize()
        assert snap.state == AtPipePoint(0, 0)
        assert snap.records == (employees[0],)

    def test_step_from_not_started_initializes(self, session):
        assert session.step().state == AtPipePoint(0, 0)

    def test_step_sequence(self, session, employees):
        states = [snap.state for snap in step_all(session)]
        assert states == [
            AtPipePoint(0, 0), AtPipePoint(0, 1), AtPipePoint(0, 2),
            AtPipePoint(1, 0), AtPipePoint(1, 1), AtPipePoint(1, 2),
            Finished(),
        ]

    def test_filtered_record_still_reaches_every_pipe_point(self, session):
        snaps = step_all(session)
        assert snaps[4].state == AtPipePoint(1, 1)
        assert snaps[4].records == ()
        assert snaps[5].records == ()

    def test_output_grows_at_last_pipe_point(self, session, employees):
        snaps = step_all(session)
        assert snaps[1].output == ()
        assert snaps[2].output == (employees[0],)
        assert snaps[-1].output == (employees[0],)
        assert snaps[-1].is_finished

    def test_step_after_finish_stays_finished(self, session):
        step_all(session)
        assert session.step().state == Finished()

    def test_pipe_point_count(self, employees):
        session = DebugSession("TAKE 3 | UPPER | REVERSE", employees)
        snaps = step_all(session)
        assert len(snaps) - 1 == len(employees) * 4

    def test_empty_input_finishes_immediately(self):
        assert DebugSession("UPPER", []).initialize().state == Finished()

    def test_accepts_pipeline_object(self, employees):
        session = DebugSession(parse_pipeline("UPPER"), employees[:1])
        assert session.stage_count == 1

    @pytest.mark.parametrize("text", [
        SALES_UPPER,
        "COUNT | DUPLICATE 2",
        'LITERAL "HEAD" | SKIP 1 | COUNT',
        "DUPLICATE 3 | TAKE 4",
    ])
    def test_stepped_output_matches_rat(self, text, employees):
        session = DebugSession(text, employees)
        final = step_all(session)[-1]
        assert list(final.output) == run_rat(employees, text).unwrap()

    def test_state_text(self):
        assert str(AtPipePoint(0, 2)) == "record 1, pipe point 2"
        assert str(AtFlush(0, 1)) == "flush 1, pipe point 1"
        assert str(NotStarted()) == "not started"
        assert str(Finished()) == "finished"


class TestFlushPhase:
    def test_flush_group(self, employees):
        session = DebugSession("COUNT", employees[:2])
        snaps = step_all(session)
        assert [s.state for s in snaps] == [
            AtPipePoint(0, 0), AtPipePoint(0, 1),
            AtPipePoint(1, 0), AtPipePoint(1, 1),
            AtFlush(0, 1),
            Finished(),
        ]
        assert snaps[4].records == (Record("2"),)
        assert snaps[-1].output == (Record("2"),)

    def test_flush_group_walks_downstream(self, employees):
        session = DebugSession("COUNT | DUPLICATE 2", employees[:1])
        flush_states = [s.state for s in step_all(session) if isinstance(s.state, AtFlush)]
        assert flush_states == [AtFlush(0, 1), AtFlush(0, 2)]

    def test_watch_upstream_of_flush_is_not_reached(self, employees):
        session = DebugSession("COUNT", employees[:1])
        session.add_watch(0)
        session.add_watch(1)
        flush = [s for s in step_all(session) if isinstance(s.state, AtFlush)][0]
        assert flush.watch("w1").records is None
        assert flush.watch("w2").records == (Record("1"),)


class TestWatches:
    def test_labels_are_sequential(self, session):
        session.add_watch(0)
        session.add_watch(2)
        snap = session.add_watch(1)
        assert [w.label for w in snap.watches] == ["w1", "w2", "w3"]
        assert [w.position for w in snap.watches] == [0, 2, 1]

    def test_labels_are_not_reused(self, session):
        session.add_watch(0)
        session.remove_watch("w1")
        assert session.add_watch(1).watches[0].label == "w2"

    def test_watch_values_follow_current_record(self, session, employees):
        session.add_watch(1)
        snaps = step_all(session)
        assert snaps[0].watch("w1").records is None
        assert not snaps[0].watch("w1").reached
        assert snaps[1].watch("w1").records == (employees[0],)
        assert snaps[2].watch("w1").records == (employees[0],)
        # Next record: pipe point 1 not reached yet, then filtered out
        assert snaps[3].watch("w1").records is None
        assert snaps[4].watch("w1").records == ()
        assert snaps[4].watch("w1").reached

    def test_watch_out_of_range(self, session):
        with pytest.raises(SessionError, match="out of range 0..2"):
            session.add_watch(3)
        with pytest.raises(SessionError):
            session.add_watch(-1)

    def test_remove_unknown_watch(self, session):
        with pytest.raises(SessionError, match="w9"):
            session.remove_watch("w9")

    def test_snapshot_watch_lookup(self, session):
        with pytest.raises(KeyError):
            session.snapshot().watch("w1")

    def test_watch_added_mid_run_sees_current_unit(self, session, employees):
        session.initialize()
        session.step()
        snap = session.add_watch(0)
        assert snap.watch("w1").records == (employees[0],)


class TestBreakpoints:
    def test_run_to_breakpoint(self, session):
        session.add_breakpoint(2)
        first = session.run_to_breakpoint()
        assert first.state == AtPipePoint(0, 2)
        assert first.paused_at_breakpoint
        second = session.run_to_breakpoint()
        assert second.state == AtPipePoint(1, 2)
        assert session.run_to_breakpoint().state == Finished()

    def test_breakpoint_at_first_pipe_point(self, session):
        session.add_breakpoint(0)
        assert session.run_to_breakpoint().state == AtPipePoint(0, 0)
        assert session.run_to_breakpoint().state == AtPipePoint(1, 0)

    def test_no_breakpoints_runs_to_end(self, session, employees):
        snap = session.run_to_breakpoint()
        assert snap.is_finished
        assert not snap.paused_at_breakpoint
        assert snap.output == (employees[0],)

    def test_step_clears_pause(self, session):
        session.add_breakpoint(1)
        assert session.run_to_breakpoint().paused_at_breakpoint
        assert not session.step().paused_at_breakpoint

    def test_step_ignores_breakpoints(self, session):
        session.add_breakpoint(1)
        states = [s.state for s in step_all(session)]
        assert len(states) == 7

    def test_breakpoints_in_flush_phase(self, employees):
        session = DebugSession("COUNT", employees[:1])
        session.add_breakpoint(1)
        assert session.run_to_breakpoint().state == AtPipePoint(0, 1)
        assert session.run_to_breakpoint().state == AtFlush(0, 1)

    def test_breakpoints_sorted_and_unique(self, session):
        session.add_breakpoint(2)
        session.add_breakpoint(0)
        snap = session.add_breakpoint(2)
        assert snap.breakpoints == (0, 2)

    def test_remove_breakpoint(self, session):
        session.add_breakpoint(1)
        assert session.remove_breakpoint(1).breakpoints == ()
        # Removing an absent breakpoint is a no-op
        assert session.remove_breakpoint(1).breakpoints == ()

    def test_breakpoint_out_of_range(self, session):
        with pytest.raises(SessionError):
            session.add_breakpoint(5)


class TestResetAndReinitialize:
    def test_reset_keeps_watches_and_breakpoints(self, session, employees):
        session.add_watch(1)
        session.add_breakpoint(2)
        session.run_to_breakpoint()
        snap = session.reset()
        assert snap.state == AtPipePoint(0, 0)
        assert snap.output == ()
        assert [w.label for w in snap.watches] == ["w1"]
        assert snap.breakpoints == (2,)

    def test_reset_rebuilds_stage_state(self, employees):
        session = DebugSession("TAKE 1", employees[:2])
        first = step_all(session)[-1].output
        session.reset()
        while not session.snapshot().is_finished:
            session.step()
        assert session.snapshot().output == first

    def test_reinitialize_drops_out_of_range_positions(self, session):
        session.add_watch(0)
        session.add_watch(2)
        session.add_breakpoint(1)
        session.add_breakpoint(2)
        snap = session.reinitialize("UPPER")
        assert [(w.label, w.position) for w in snap.watches] == [("w1", 0)]
        assert snap.breakpoints == (1,)
        assert snap.stage_names == ("UPPER",)
        assert snap.state == AtPipePoint(0, 0)

    def test_reinitialize_with_new_input(self, session):
        snap = session.reinitialize("COUNT", [Record("A")])
        assert step_all(session)[-1].output == (Record("1"),)
        assert snap.records == (Record("A"),)


class TestForSpec:
    def test_second_pipeline_reads_first_output(self, employees):
        text = 'PIPE CONSOLE | FILTER 18,10 = "SALES" | CONSOLE\n?\nPIPE CONSOLE | COUNT | CONSOLE\n?'
        session = DebugSession.for_spec(text, employees, 1, sources=MemoryFiles(), sinks=MemoryFiles())
        assert len(session.input_records) == 2
        assert step_all(session)[-1].output == (Record("2"),)

    def test_file_source(self, employees, memory_files):
        session = DebugSession.for_spec(
            "PIPE < employees.txt | TAKE 2 | CONSOLE", [], sources=memory_files, sinks=memory_files,
        )
        assert session.input_records == employees
