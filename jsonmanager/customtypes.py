from dataclasses import dataclass

@dataclass(frozen=True)
class Error:
    message: str

    @classmethod
    def from_exception(cls, exception: Exception):
        return cls(message=str(exception) or type(exception).__name__)
