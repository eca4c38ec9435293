"""
Session code generation.

Codes are short and human-typeable: fixed length, drawn from an alphabet without
visually ambiguous characters. The generator never reserves a code; the caller must
insert it into the store under the same lock it used for the collision check.
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from .config import DEFAULT_CODE_ALPHABET
from .errors import GeneratorExhausted


class SessionCodeGenerator:
    def __init__(
        self,
        *,
        length: int = 6,
        alphabet: str = DEFAULT_CODE_ALPHABET,
        max_attempts: int = 100,
        choice: Optional[Callable[[str], str]] = None,
    ):
        if length < 1:
            raise ValueError("length must be positive")
        if len(set(alphabet)) != len(alphabet) or len(alphabet) < 2:
            raise ValueError("alphabet must hold at least two distinct symbols")
        self.length = length
        self.alphabet = alphabet
        self.max_attempts = max_attempts
        self._choice = choice or secrets.choice

    def draw(self) -> str:
        return "".join(self._choice(self.alphabet) for _ in range(self.length))

    def generate(self, is_taken: Callable[[str], bool] = lambda code: False) -> str:
        """Return a fresh code for which `is_taken(code)` is False."""
        for _ in range(self.max_attempts):
            code = self.draw()
            if not is_taken(code):
                return code
        raise GeneratorExhausted(self.max_attempts)

    def normalize(self, code: str) -> str:
        # Codes are issued upper-case; clients may type them in either case.
        return code.strip().upper()
