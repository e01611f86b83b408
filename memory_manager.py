import logging
from collections import deque, namedtuple
from enum import Enum

logger = logging.getLogger(__name__)


class ReplacementPolicy(Enum):
    FIFO = "FIFO"
    LRU = "LRU"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown page replacement policy: {value} (use FIFO or LRU)") from None


# Result of one page reference. frame_id is only set on a fault.
AccessResult = namedtuple('AccessResult', ['resident', 'frame_id'])

# Read-only copy of a frame handed out to callers
FrameInfo = namedtuple('FrameInfo', ['frame_id', 'pid', 'page', 'loaded_tick', 'last_access_tick'])


class Frame:
    def __init__(self, frame_id):
        self.frame_id = frame_id
        self.pid = None  # None means free
        self.page = None
        self.loaded_tick = None  # For FIFO
        self.last_access_tick = None  # For LRU

    def is_free(self):
        return self.pid is None

    def holds(self, pid, page):
        return self.pid == pid and self.page == page

    def load(self, pid, page, tick):
        self.pid = pid
        self.page = page
        self.loaded_tick = tick
        self.last_access_tick = tick

    def info(self):
        return FrameInfo(self.frame_id, self.pid, self.page, self.loaded_tick, self.last_access_tick)


class PhysicalMemory:
    def __init__(self, num_frames=8):
        self.num_frames = num_frames
        self.frames = [Frame(i) for i in range(num_frames)]

    def find_free_frame(self):
        for frame in self.frames:
            if frame.is_free():
                return frame.frame_id
        return None

    def find_resident(self, pid, page):
        for frame in self.frames:
            if frame.holds(pid, page):
                return frame.frame_id
        return None

    def get_frame(self, frame_id):
        return self.frames[frame_id]

    def occupied_frames(self):
        return [frame for frame in self.frames if not frame.is_free()]

    def is_full(self):
        return self.find_free_frame() is None


class Statistics:
    def __init__(self):
        self.accesses = 0
        self.hits = 0
        self.page_faults = 0
        self.replacements = 0

    def record_hit(self):
        self.accesses += 1
        self.hits += 1

    def record_page_fault(self, is_replacement=False):
        self.accesses += 1
        self.page_faults += 1
        if is_replacement:
            # Fault resolved by evicting an occupied frame
            self.replacements += 1

    def __str__(self):
        return (f"Accesses: {self.accesses}\n"
                f"Hits: {self.hits}\n"
                f"Page Faults: {self.page_faults}\n"
                f"Replacements: {self.replacements}")


class MemoryManager:
    """
    Global frame pool with global page replacement.

    The manager keeps its own tick counter; the caller advances it once per
    simulated cycle, before the access made on that cycle.
    """

    def __init__(self, num_frames=8, policy=ReplacementPolicy.FIFO):
        self.reset(num_frames, policy)

    def reset(self, num_frames, policy):
        if num_frames <= 0:
            raise ValueError(f"Frame count must be positive, got {num_frames}")
        self.policy = ReplacementPolicy.parse(policy)
        self.physical_memory = PhysicalMemory(num_frames=num_frames)
        self.stats = Statistics()
        self.current_tick = 0
        # Frame ids ordered by how long their current page has been resident
        self.fifo_queue = deque()

    @property
    def num_frames(self):
        return self.physical_memory.num_frames

    @property
    def total_page_faults(self):
        return self.stats.page_faults

    @property
    def total_replacements(self):
        return self.stats.replacements

    def reconstruct(self, num_frames, policy):
        """
        Replace the pool with a fresh one. Every resident page is dropped and
        the statistics start over, but the tick counter keeps its value so it
        stays in step with the scheduler clock.
        """
        tick = self.current_tick
        self.reset(num_frames, policy)
        self.current_tick = tick
        logger.info("MEMORY reset frames=%d policy=%s", num_frames, self.policy.value)

    def set_policy(self, policy):
        self.policy = ReplacementPolicy.parse(policy)
        # Admission order is lost, resident frames re-enter in frame id order
        self.fifo_queue = deque(frame.frame_id for frame in self.physical_memory.occupied_frames())

    def advance_tick(self):
        self.current_tick += 1

    def is_resident(self, pid, page):
        return self.physical_memory.find_resident(pid, page) is not None

    def frames(self):
        return tuple(frame.info() for frame in self.physical_memory.frames)

    def access(self, pid, page):
        frame_id = self.physical_memory.find_resident(pid, page)
        if frame_id is not None:
            self.physical_memory.get_frame(frame_id).last_access_tick = self.current_tick
            self.stats.record_hit()
            return AccessResult(True, None)

        return AccessResult(False, self.handle_page_fault(pid, page))

    def handle_page_fault(self, pid, page):
        frame_id = self.physical_memory.find_free_frame()

        if frame_id is None:
            frame_id = self.select_victim_page()
            self.evict_page(frame_id)
            self.stats.record_page_fault(is_replacement=True)
        else:
            self.stats.record_page_fault(is_replacement=False)

        self.physical_memory.get_frame(frame_id).load(pid, page, self.current_tick)
        if self.policy is ReplacementPolicy.FIFO:
            self.fifo_queue.append(frame_id)
        return frame_id

    def select_victim_page(self):
        if self.policy is ReplacementPolicy.FIFO:
            return self.select_victim_fifo()
        elif self.policy is ReplacementPolicy.LRU:
            return self.select_victim_lru()
        else:
            raise ValueError(f"Unknown policy: {self.policy}")

    def select_victim_fifo(self):
        while self.fifo_queue:
            frame_id = self.fifo_queue.popleft()
            if not self.physical_memory.get_frame(frame_id).is_free():
                return frame_id

        # Queue out of sync with the pool: oldest load wins
        victim = min(self.physical_memory.occupied_frames(),
                     key=lambda f: (f.loaded_tick, f.frame_id))
        return victim.frame_id

    def select_victim_lru(self):
        victim = min(self.physical_memory.occupied_frames(),
                     key=lambda f: (f.last_access_tick, f.frame_id))
        return victim.frame_id

    def evict_page(self, frame_id):
        frame = self.physical_memory.get_frame(frame_id)
        logger.debug("[tick %d] EVICT frame=%d pid=%s page=%s",
                     self.current_tick, frame_id, frame.pid, frame.page)
        # Dropped from wherever it sits; the caller re-appends it on load
        if frame_id in self.fifo_queue:
            self.fifo_queue.remove(frame_id)
        frame.pid = None
        frame.page = None
        return frame_id
