import enum


class POStatus(str, enum.Enum):
    pending = "pending"
    received = "received"
