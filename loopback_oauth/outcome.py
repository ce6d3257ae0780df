from dataclasses import dataclass, asdict
from typing import Dict, Optional


@dataclass(frozen=True)
class CallbackOutcome:
    """
    What the browser redirect carried back to the loopback listener.

    A well formed redirect carries either a code or an error. When the
    request could not be parsed, error holds a diagnostic instead.
    """

    code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.code is not None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)
