# Constants shared by the engine, the journal and the project file
from enum import Enum, IntFlag


class ScheduleMask(IntFlag):
    # what an element wants evaluated on the next tick
    NONE = 0
    SELF = 1
    OUTPUTS = 2
    BOTH = 3


class Edge(str, Enum):
    # monostable trigger modes, cycled in this order by edit()
    RISING = "rising"
    FALLING = "falling"
    DUAL = "dual"

    @classmethod
    def _missing_(cls, value):
        if value == "both":
            return cls.DUAL
        return super()._missing_(value)

    def next(self) -> "Edge":
        order = list(Edge)
        return order[(order.index(self) + 1) % len(order)]


# Journal
UNDO_LIMIT = 100

# Project file
FILE_FORMAT_VERSION = 2
DEFAULT_FILE_NAME = "new_logic_circuit.json"
DEFAULT_TPS = 10

# Element creation prompts
DEFAULT_DELAY = 5
DEFAULT_LABEL = "Label"

# Connection strokes, used for picking wires
WIRE_HALF_WIDTH_START = 3
WIRE_HALF_WIDTH_END = 1.5
WIRE_BIDIRECTIONAL_OFFSET = 3
WIRE_CLICK_TOLERANCE = 1

# Label metrics (font size is 2*(ry-padding))
LABEL_PADDING = 5
LABEL_CHAR_WIDTH = 0.55
