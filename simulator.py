import logging
import random
import re
import sys
from collections import namedtuple

from memory_manager import MemoryManager, ReplacementPolicy
from process import CPUPolicy
from scheduler import Scheduler

logger = logging.getLogger(__name__)

# What happened on one cycle in which a process held the CPU
TickEvent = namedtuple('TickEvent', ['tick', 'pid', 'page', 'hit', 'frame_id'])


def parse_trace(text):
    """Parse a comma and/or whitespace separated list of page numbers."""
    return [int(token) for token in re.split(r'[,\s]+', text.strip()) if token]


def parse_workload_line(line):
    """Split '<burst> [page_count] [trace]' into (burst, page_count, trace)."""
    parts = line.split(None, 2)
    try:
        burst = int(parts[0])
        page_count = int(parts[1]) if len(parts) > 1 else 4
        trace = parse_trace(parts[2]) if len(parts) > 2 else []
    except ValueError:
        raise ValueError("malformed workload line") from None
    if burst <= 0:
        raise ValueError(f"burst must be positive, got {burst}")
    if page_count <= 0:
        raise ValueError(f"page count must be positive, got {page_count}")
    return burst, page_count, trace


class OSSimulator:

    def __init__(self, cpu_policy=CPUPolicy.RR, quantum=2, page_policy=ReplacementPolicy.FIFO,
                 num_frames=8, random_seed=None):
        self.scheduler = Scheduler(policy=cpu_policy, quantum=quantum)
        self.memory = MemoryManager(num_frames=num_frames, policy=page_policy)
        self.rng = random.Random(random_seed)

    def create_process(self, burst, page_count=4, trace=None):
        return self.scheduler.create(burst, page_count, trace)

    def kill(self, pid):
        return self.scheduler.kill(pid)

    def set_scheduler(self, policy, quantum=2):
        self.scheduler.set_policy(policy, quantum)

    def set_page_mode(self, policy, num_frames=None):
        """Change the replacement policy; with num_frames the frame pool is rebuilt empty."""
        if num_frames is None:
            self.memory.set_policy(policy)
        else:
            self.memory.reconstruct(num_frames, policy)

    def step(self):
        # Memory clock first so this cycle's access is stamped with it
        self.memory.advance_tick()
        tick = self.scheduler.current_tick
        pid = self.scheduler.tick()
        if pid is None:
            return None

        process = self.scheduler.get_process(pid)
        page = process.next_page(self.rng)
        result = self.memory.access(pid, page)
        if result.resident:
            logger.debug("[tick %d] HIT pid=%d page=%d", tick, pid, page)
        else:
            process.page_faults += 1
            logger.debug("[tick %d] PAGE_FAULT pid=%d page=%d loaded in frame=%d",
                         tick, pid, page, result.frame_id)
        return TickEvent(tick, pid, page, result.resident, result.frame_id)

    def run(self, n):
        events = []
        for _ in range(n):
            event = self.step()
            if event is not None:
                events.append(event)
        return events

    def run_until_idle(self, max_ticks=100000):
        events = []
        for _ in range(max_ticks):
            if self.scheduler.all_terminated():
                break
            event = self.step()
            if event is not None:
                events.append(event)
        return events

    def load_workload(self, filename):
        """
        Create one process per line: <burst> [page_count] [trace].
        Blank lines and lines starting with '#' are skipped. The whole file
        is checked before any process is created, so a rejected file adds
        nothing.
        """
        specs = []
        with open(filename, 'r') as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                try:
                    specs.append(parse_workload_line(line))
                except ValueError as e:
                    raise ValueError(f"{filename}:{line_no}: {e}: {line!r}") from None

        return [self.create_process(burst, page_count, trace) for burst, page_count, trace in specs]

    def process_table(self):
        header = f"{'PID':<5}{'STATE':<12}{'REM':<6}{'PAGES':<7}{'ARR':<6}{'START':<7}{'FINISH':<8}{'WAIT':<6}{'PF':<5}"
        lines = [header]
        for process in self.scheduler.processes().values():
            row = process.to_row()
            start = '-' if row['start'] is None else row['start']
            finish = '-' if row['finish'] is None else row['finish']
            lines.append(f"{row['pid']:<5}{row['state']:<12}{row['remaining']:<6}{row['pages']:<7}"
                         f"{row['arrival']:<6}{start:<7}{finish:<8}{row['wait']:<6}{row['faults']:<5}")
        return "\n".join(lines)

    def memory_report(self):
        lines = [f"Memory stats at tick {self.scheduler.current_tick}",
                 f"Total page faults: {self.memory.total_page_faults} "
                 f"total replacements: {self.memory.total_replacements}",
                 "Frames (id : pid,page,loaded_at,last_access):"]
        for frame in self.memory.frames():
            if frame.pid is None:
                lines.append(f"{frame.frame_id} : <free>")
            else:
                lines.append(f"{frame.frame_id} : {frame.pid},{frame.page} "
                             f"(l@{frame.loaded_tick} a@{frame.last_access_tick})")
        return "\n".join(lines)

    def run_simulation(self, filename, ticks=None):
        """Load filename, run it to completion (or for ticks cycles) and print the tables."""
        self.load_workload(filename)
        if ticks is None:
            self.run_until_idle()
        else:
            self.run(ticks)

        print(f"-- {filename}: {self.scheduler.policy.value}/{self.memory.policy.value}, "
              f"{self.memory.num_frames} frames, {self.scheduler.current_tick} ticks")
        print(self.process_table())
        print(self.memory.stats)
        print()

        return self.summary()

    def summary(self):
        return {
            'ticks': self.scheduler.current_tick,
            'page_faults': self.memory.total_page_faults,
            'replacements': self.memory.total_replacements,
            'avg_wait': self.scheduler.average_wait(),
            'avg_turnaround': self.scheduler.average_turnaround(),
        }


HELP_TEXT = """Commands:
  new <burst> [npages] [trace_comma_sep]   -> create a process
     e.g. new 10 4 0,1,2,1  (burst=10, npages=4, trace)
  ps                                       -> list processes
  tick                                     -> advance 1 tick
  run N                                    -> run N ticks
  kill PID                                 -> kill a process
  set_sched RR <quantum>                   -> Round-Robin
  set_sched SJF                            -> non-preemptive SJF
  set_pagemode FIFO|LRU [nframes]          -> set replacement, optionally resize frames
  memstat                                  -> show frames and stats
  help                                     -> show this help
  exit                                     -> quit"""


class SimulatorShell:
    """Line-based command driver over one OSSimulator."""

    prompt = ">> "

    def __init__(self, simulator=None):
        self.simulator = simulator or OSSimulator()
        self.running = True

        self.commands = {
            'help': self.help_command,
            'exit': self.exit_command,
            'new': self.new_command,
            'ps': self.ps_command,
            'kill': self.kill_command,
            'tick': self.tick_command,
            'run': self.run_command,
            'set_sched': self.set_sched_command,
            'set_pagemode': self.set_pagemode_command,
            'memstat': self.memstat_command,
        }

    def help_command(self, args):
        print(HELP_TEXT)

    def exit_command(self, args):
        print("Exiting...")
        self.running = False

    def new_command(self, args):
        if not args:
            print("new requires burst")
            return
        burst, page_count, trace = parse_workload_line(" ".join(args))
        pid = self.simulator.create_process(burst, page_count, trace)
        print(f"[tick {self.simulator.scheduler.current_tick}] CREATED pid={pid} "
              f"burst={burst} pages={page_count}")

    def ps_command(self, args):
        print(self.simulator.process_table())

    def kill_command(self, args):
        if not args:
            print("kill requires pid")
            return
        pid = int(args[0])
        if self.simulator.kill(pid):
            print(f"[tick {self.simulator.scheduler.current_tick}] KILLED pid={pid}")
        else:
            print("pid not found")

    def tick_command(self, args):
        self.print_event(self.simulator.step())

    def run_command(self, args):
        if not args:
            print("run requires a number")
            return
        for _ in range(int(args[0])):
            self.print_event(self.simulator.step())

    def set_sched_command(self, args):
        kind = args[0].upper() if args else ''
        if kind == 'RR':
            quantum = int(args[1]) if len(args) > 1 else 2
            self.simulator.set_scheduler(CPUPolicy.RR, quantum)
            print(f"Scheduler set to RR quantum={quantum}")
        elif kind == 'SJF':
            self.simulator.set_scheduler(CPUPolicy.SJF)
            print("Scheduler set to SJF_nonpreemptive")
        else:
            print("Unknown scheduler. Use RR or SJF")

    def set_pagemode_command(self, args):
        kind = args[0].upper() if args else ''
        if kind not in ('FIFO', 'LRU'):
            print("Usage: set_pagemode FIFO|LRU [nframes]")
            return
        num_frames = int(args[1]) if len(args) > 1 else None
        self.simulator.set_page_mode(kind, num_frames)
        print(f"Page replacement = {kind}")

    def memstat_command(self, args):
        print(self.simulator.memory_report())

    def print_event(self, event):
        if event is None:
            return
        if event.hit:
            print(f"[tick {event.tick}] HIT pid={event.pid} page={event.page}")
        else:
            print(f"[tick {event.tick}] PAGE_FAULT pid={event.pid} page={event.page} "
                  f"loaded in frame={event.frame_id}")

    def execute_command(self, command_line):
        parts = command_line.strip().split()
        if not parts:
            return

        command, args = parts[0], parts[1:]
        if command not in self.commands:
            print("Unknown command. Type help.")
            return
        try:
            self.commands[command](args)
        except ValueError as e:
            print(f"Error: {e}")

    def run(self, stream):
        print("=== OS Simulator (RR/SJF scheduling + FIFO/LRU paging) ===")
        print("Defaults: scheduler RR quantum=2, page policy FIFO with 8 frames")
        for line in stream:
            if not self.running:
                break
            print(self.prompt + line.rstrip("\n"))
            self.execute_command(line)


def shell_main():
    shell = SimulatorShell()
    print("Type 'help' for available commands")
    while shell.running:
        try:
            shell.execute_command(input(shell.prompt))
        except EOFError:
            break


def main():
    cpu_policies = [CPUPolicy.RR, CPUPolicy.SJF]
    page_policies = [ReplacementPolicy.FIFO, ReplacementPolicy.LRU]
    data_files = ['data1.txt', 'data2.txt']

    results = {}
    for data_file in data_files:
        results[data_file] = {}
        for cpu_policy in cpu_policies:
            for page_policy in page_policies:
                simulator = OSSimulator(cpu_policy=cpu_policy, page_policy=page_policy, random_seed=0)
                label = f"{cpu_policy.value}/{page_policy.value}"
                results[data_file][label] = simulator.run_simulation(data_file)

    for data_file, by_policy in results.items():
        print(f"{data_file}: {'policy':<10}{'faults':>8}{'repl':>8}{'wait':>8}{'turn':>8}")
        for label, r in by_policy.items():
            print(f"{'':<{len(data_file) + 2}}{label:<10}{r['page_faults']:>8}{r['replacements']:>8}"
                  f"{r['avg_wait']:>8.2f}{r['avg_turnaround']:>8.2f}")


if __name__ == '__main__':
    if sys.argv[1:] == ['shell']:
        shell_main()
    else:
        main()
