from enum import Enum

from wirekv.protocol.errors import InvalidCommand


class Command(Enum):
    SET = 0
    GET = 1
    DEL = 2

    @staticmethod
    def from_byte(byte: int) -> 'Command':
        try:
            return Command(byte)
        except ValueError:
            raise InvalidCommand(f"Unknown command {byte}") from None

    def to_byte(self) -> int:
        return self.value

    @staticmethod
    def from_string(token: str) -> 'Command':
        # The prompt uses the decimal tag, not the command name
        if token not in ("0", "1", "2"):
            raise InvalidCommand(f"Unknown command {token!r}")
        return Command(int(token))

    def to_string(self) -> str:
        return str(self.value)
