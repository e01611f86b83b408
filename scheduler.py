import logging
from types import MappingProxyType

from process import CPUPolicy, Process, ProcessState

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Single-CPU scheduler: Round-Robin or non-preemptive Shortest-Job-First.

    The process table is the only record of which processes are ready.
    Round-Robin order comes from queue_sequence, stamped from a monotonic
    counter each time a process (re-)enters READY.
    """

    def __init__(self, policy=CPUPolicy.RR, quantum=2):
        self.policy = CPUPolicy.RR
        self.quantum = quantum
        self.current_tick = 0
        self.next_pid = 1

        self.procs = {}  # pid -> Process
        self.running_pid = None
        self.rr_slice_used = 0  # ticks used by the running process in this slice
        self.queue_counter = 0

        self._configure(policy, quantum)

    def _configure(self, policy, quantum):
        policy = CPUPolicy.parse(policy)
        if policy is CPUPolicy.RR and (quantum is None or quantum <= 0):
            raise ValueError(f"Round-Robin quantum must be positive, got {quantum}")
        self.policy = policy
        self.quantum = quantum

    def log(self, event, **fields):
        details = " ".join(f"{key}={value}" for key, value in fields.items())
        logger.debug("[tick %d] %s %s", self.current_tick, event, details)

    def create(self, burst, page_count=4, trace=None):
        if burst <= 0:
            raise ValueError(f"Burst must be positive, got {burst}")
        if page_count <= 0:
            raise ValueError(f"Page count must be positive, got {page_count}")

        pid = self.next_pid
        self.next_pid += 1
        process = Process(pid, burst, self.current_tick, page_count, trace)
        self.procs[pid] = process
        self.enqueue(process)
        self.log("CREATED", pid=pid, burst=burst, pages=page_count)
        return pid

    def enqueue(self, process):
        process.state = ProcessState.READY
        process.queue_sequence = self.queue_counter
        self.queue_counter += 1

    def release_cpu(self):
        self.running_pid = None
        self.rr_slice_used = 0

    def kill(self, pid):
        """Terminate pid. Returns False when no such process exists."""
        process = self.procs.get(pid)
        if process is None:
            logger.warning("[tick %d] pid %s not found", self.current_tick, pid)
            return False
        if process.is_terminated:
            return True

        process.state = ProcessState.TERMINATED
        process.finish_tick = self.current_tick
        if self.running_pid == pid:
            self.release_cpu()
        self.log("KILLED", pid=pid)
        return True

    def set_policy(self, policy, quantum=2):
        """
        Switch dispatch discipline. The running process, if any, goes back
        to the tail of the ready queue.
        """
        self._configure(policy, quantum)
        if self.running_pid is not None:
            preempted = self.procs[self.running_pid]
            self.enqueue(preempted)
            self.log("PREEMPT", pid=preempted.pid)
        self.release_cpu()
        logger.info("Scheduler set to %s quantum=%s", self.policy.value, self.quantum)

    def ready_processes(self):
        return [p for p in self.procs.values() if p.state is ProcessState.READY]

    def ready_pids(self):
        """READY pids in the order the active policy would dispatch them."""
        return [p.pid for p in sorted(self.ready_processes(), key=self._dispatch_key)]

    def _dispatch_key(self, process):
        if self.policy is CPUPolicy.SJF:
            return (process.remaining_burst, process.pid)
        return (process.queue_sequence,)

    def schedule_next(self):
        candidates = self.ready_processes()
        if not candidates:
            return None
        return min(candidates, key=self._dispatch_key)

    def dispatch(self):
        process = self.schedule_next()
        if process is None:
            return None
        process.state = ProcessState.RUNNING
        if process.start_tick is None:
            process.start_tick = self.current_tick
        self.running_pid = process.pid
        self.rr_slice_used = 0
        self.log("SCHEDULE", pid=process.pid)
        return process.pid

    def tick(self):
        """
        Advance one cycle. Returns the pid that held the CPU during the
        cycle, or None if it was idle.
        """
        if self.running_pid is None:
            self.dispatch()

        for process in self.ready_processes():
            process.wait_ticks += 1

        ran_pid = self.running_pid
        if ran_pid is not None:
            process = self.procs[ran_pid]
            process.remaining_burst -= 1
            self.log("RUN", pid=ran_pid, rem=process.remaining_burst)

            if process.remaining_burst <= 0:
                process.state = ProcessState.TERMINATED
                process.finish_tick = self.current_tick + 1
                self.log("EXIT", pid=ran_pid)
                self.release_cpu()
            elif self.policy is CPUPolicy.RR:
                self.rr_slice_used += 1
                if self.rr_slice_used >= self.quantum:
                    self.enqueue(process)
                    self.log("PREEMPT", pid=ran_pid)
                    self.release_cpu()

        self.current_tick += 1
        return ran_pid

    def run_ticks(self, n, on_run=None):
        results = []
        for _ in range(n):
            ran = self.tick()
            if ran is not None and on_run is not None:
                on_run(ran)
            results.append(ran)
        return results

    def processes(self):
        """
        Live read-only view of the process table. The view is shallow: the
        mapping rejects assignment but the Process records are the
        scheduler's own, use to_row() for a detached copy.
        """
        return MappingProxyType(self.procs)

    def get_process(self, pid):
        return self.procs.get(pid)

    def all_terminated(self):
        return all(p.is_terminated for p in self.procs.values())

    def average_wait(self):
        finished = [p for p in self.procs.values() if p.is_terminated]
        if not finished:
            return 0.0
        return sum(p.wait_ticks for p in finished) / len(finished)

    def average_turnaround(self):
        finished = [p for p in self.procs.values() if p.is_terminated]
        if not finished:
            return 0.0
        return sum(p.turnaround for p in finished) / len(finished)
