import io

import pytest

from memory_manager import ReplacementPolicy
from process import CPUPolicy, ProcessState
from simulator import OSSimulator, SimulatorShell, TickEvent, parse_trace


def test_step_resolves_one_page_per_cycle():
    simulator = OSSimulator(num_frames=8)
    pid = simulator.create_process(3, page_count=2, trace=[0, 1, 0])
    events = simulator.run(3)

    assert events == [TickEvent(0, pid, 0, False, 0),
                      TickEvent(1, pid, 1, False, 1),
                      TickEvent(2, pid, 0, True, None)]
    process = simulator.scheduler.get_process(pid)
    assert process.page_faults == 2
    assert process.state is ProcessState.TERMINATED
    assert simulator.memory.current_tick == simulator.scheduler.current_tick == 3


def test_idle_cycle_still_advances_both_clocks():
    simulator = OSSimulator()
    assert simulator.step() is None
    assert simulator.memory.current_tick == 1
    assert simulator.scheduler.current_tick == 1
    assert simulator.memory.stats.accesses == 0


def test_trace_wraps_and_reduces_out_of_range_pages():
    simulator = OSSimulator()
    simulator.create_process(5, page_count=2, trace=[5, -1, 0])
    pages = [event.page for event in simulator.run(5)]
    assert pages == [1, 1, 0, 1, 1]


def test_random_pages_are_in_range_and_reproducible():
    def pages(seed):
        simulator = OSSimulator(random_seed=seed)
        simulator.create_process(20, page_count=3)
        return [event.page for event in simulator.run(20)]

    first = pages(7)
    assert first == pages(7)
    assert all(0 <= page < 3 for page in first)


def test_faults_are_attributed_to_running_process():
    simulator = OSSimulator(cpu_policy=CPUPolicy.RR, quantum=1, num_frames=1)
    simulator.create_process(2, page_count=1, trace=[0])
    simulator.create_process(2, page_count=1, trace=[0])
    events = simulator.run(4)

    assert [e.pid for e in events] == [1, 2, 1, 2]
    # one frame shared by two processes: every access misses
    assert not any(e.hit for e in events)
    procs = simulator.scheduler.processes()
    assert procs[1].page_faults == 2 and procs[2].page_faults == 2
    assert simulator.memory.total_replacements == 3


def test_set_page_mode_with_frames_resets_pool():
    simulator = OSSimulator(num_frames=2)
    simulator.create_process(4, page_count=4, trace=[0, 1, 2, 3])
    simulator.run(2)

    simulator.set_page_mode('LRU', num_frames=3)
    assert simulator.memory.policy is ReplacementPolicy.LRU
    assert simulator.memory.num_frames == 3
    assert all(frame.pid is None for frame in simulator.memory.frames())
    assert simulator.memory.current_tick == simulator.scheduler.current_tick == 2

    simulator.set_page_mode(ReplacementPolicy.FIFO)
    assert simulator.memory.num_frames == 3


def test_kill_and_set_scheduler_through_simulator():
    simulator = OSSimulator()
    simulator.create_process(5)
    simulator.create_process(1)
    simulator.set_scheduler('SJF')
    assert simulator.step().pid == 2
    assert simulator.kill(1) is True
    assert simulator.kill(99) is False
    assert simulator.step() is None


def test_load_workload(tmp_path):
    workload = tmp_path / "workload.txt"
    workload.write_text("# comment\n6\n\n3 2\n4 3 0, 1 2,5\n")

    simulator = OSSimulator()
    assert simulator.load_workload(str(workload)) == [1, 2, 3]

    procs = simulator.scheduler.processes()
    assert procs[1].page_count == 4 and procs[1].trace == ()
    assert procs[2].page_count == 2
    assert procs[3].trace == (0, 1, 2, 5)


def test_load_workload_rejects_malformed_lines(tmp_path):
    workload = tmp_path / "bad.txt"
    workload.write_text("3 2\nfour 2\n")

    simulator = OSSimulator()
    with pytest.raises(ValueError, match=":2:"):
        simulator.load_workload(str(workload))


def test_run_until_idle_and_summary():
    simulator = OSSimulator(cpu_policy='SJF', page_policy='LRU', num_frames=2)
    simulator.create_process(3, page_count=2, trace=[0, 1])
    simulator.create_process(2, page_count=2, trace=[1])
    simulator.run_until_idle()

    summary = simulator.summary()
    assert simulator.scheduler.all_terminated()
    assert summary['ticks'] == 5
    assert summary['page_faults'] == simulator.memory.total_page_faults
    assert summary['avg_wait'] == 1.0


def test_reports():
    simulator = OSSimulator(num_frames=2)
    simulator.create_process(2, page_count=1, trace=[0])
    simulator.step()

    table = simulator.process_table()
    assert table.splitlines()[0].startswith("PID")
    assert "RUNNING" in table

    report = simulator.memory_report()
    assert "Total page faults: 1" in report
    assert "0 : 1,0 (l@1 a@1)" in report
    assert "1 : <free>" in report


def test_parse_trace():
    assert parse_trace("0,1, 2  3") == [0, 1, 2, 3]
    assert parse_trace("  ") == []


def test_load_workload_reports_line_of_invalid_values(tmp_path):
    workload = tmp_path / "bad.txt"
    workload.write_text("3 2\n0 2\n")

    simulator = OSSimulator()
    with pytest.raises(ValueError, match=r":2: burst must be positive"):
        simulator.load_workload(str(workload))

    workload.write_text("3 2\n\n4 -1\n")
    with pytest.raises(ValueError, match=r":3: page count must be positive"):
        simulator.load_workload(str(workload))


def test_rejected_workload_creates_nothing(tmp_path):
    workload = tmp_path / "bad.txt"
    workload.write_text("3 2\n5 2\nfour 2\n")

    simulator = OSSimulator()
    with pytest.raises(ValueError):
        simulator.load_workload(str(workload))
    assert len(simulator.scheduler.processes()) == 0
    assert simulator.step() is None
    assert simulator.create_process(1) == 1


def test_shell_runs_a_command_script(capsys):
    simulator = OSSimulator(random_seed=0)
    shell = SimulatorShell(simulator)
    script = io.StringIO("\n".join([
        "new 3 2 0,1",
        "new 1",
        "set_sched SJF",
        "tick",
        "ps",
        "kill 9",
        "run",
        "run 3",
        "set_pagemode CLOCK",
        "set_pagemode LRU 4",
        "memstat",
        "bogus",
        "new 0",
        "set_sched RR 0",
        "exit",
        "tick",
    ]) + "\n")

    shell.run(script)
    out = capsys.readouterr().out

    assert "CREATED pid=1 burst=3 pages=2" in out
    assert "CREATED pid=2 burst=1 pages=4" in out
    assert "Scheduler set to SJF_nonpreemptive" in out
    assert "[tick 0] PAGE_FAULT pid=2" in out
    assert "pid not found" in out
    assert "run requires a number" in out
    assert "[tick 1] PAGE_FAULT pid=1 page=0 loaded in frame=1" in out
    assert "[tick 2] PAGE_FAULT pid=1 page=1 loaded in frame=2" in out
    assert "[tick 3] HIT pid=1 page=0" in out
    assert "Usage: set_pagemode FIFO|LRU [nframes]" in out
    assert "Page replacement = LRU" in out
    assert "3 : <free>" in out
    assert "Unknown command. Type help." in out
    assert "Error: burst must be positive, got 0" in out
    assert "Error: Round-Robin quantum must be positive, got 0" in out
    assert "Exiting..." in out

    # nothing after exit is executed
    assert not shell.running
    assert simulator.scheduler.current_tick == 4
    assert len(simulator.scheduler.processes()) == 2
    assert simulator.memory.policy is ReplacementPolicy.LRU
    assert simulator.memory.num_frames == 4


def test_shell_help_lists_commands(capsys):
    SimulatorShell().execute_command("help")
    out = capsys.readouterr().out
    for command in ("new", "ps", "tick", "run N", "kill PID", "set_sched", "set_pagemode", "memstat", "exit"):
        assert command in out
