from enum import Enum


class ProcessState(Enum):
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED = "BLOCKED"  # never entered, no I/O is modeled
    TERMINATED = "TERMINATED"


class CPUPolicy(Enum):
    RR = "RR"
    SJF = "SJF"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown scheduler: {value} (use RR or SJF)") from None


class Process:
    """
    Process control block: the scheduling and paging state of one
    simulated process. Only the Scheduler mutates these records.
    """

    def __init__(self, pid, burst, arrival_tick, page_count=4, trace=None):
        self.pid = pid
        self.state = ProcessState.NEW
        self.total_burst = burst
        self.remaining_burst = burst
        self.arrival_tick = arrival_tick
        self.start_tick = None
        self.finish_tick = None
        self.wait_ticks = 0

        self.page_count = page_count
        self.trace = tuple(trace) if trace else ()
        self.trace_pos = 0
        self.page_faults = 0

        # RR dispatch order among READY processes
        self.queue_sequence = 0

    @property
    def is_terminated(self):
        return self.state is ProcessState.TERMINATED

    @property
    def turnaround(self):
        if self.finish_tick is None:
            return None
        return self.finish_tick - self.arrival_tick

    @property
    def response(self):
        if self.start_tick is None:
            return None
        return self.start_tick - self.arrival_tick

    def next_page(self, rng):
        """
        Page referenced on this tick: the next trace element (wrapping,
        reduced modulo page_count when out of range) or, without a trace,
        a uniformly random page drawn from rng.
        """
        if not self.trace:
            return rng.randrange(self.page_count)

        if self.trace_pos >= len(self.trace):
            self.trace_pos = 0
        page = self.trace[self.trace_pos]
        self.trace_pos += 1
        if page < 0 or page >= self.page_count:
            page = page % self.page_count
        return page

    def to_row(self):
        return {
            'pid': self.pid,
            'state': self.state.value,
            'remaining': self.remaining_burst,
            'pages': self.page_count,
            'arrival': self.arrival_tick,
            'start': self.start_tick,
            'finish': self.finish_tick,
            'wait': self.wait_ticks,
            'faults': self.page_faults,
        }

    def __repr__(self):
        return (f"Process(pid={self.pid}, state={self.state.value}, "
                f"remaining={self.remaining_burst}/{self.total_burst})")
