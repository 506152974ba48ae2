from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from lark import Token

from .tree import ProcedureDecl
from .utils import max_call_depth

# ---------- Activation records ----------

class ARType(Enum):
    PROGRAM = 'PROGRAM'
    PROCEDURE = 'PROCEDURE'


class ActivationRecord:
    """Local bindings of one live program/procedure invocation."""

    def __init__(self, name: str, type: ARType, nesting_level: int):
        self.name = name
        self.type = type
        self.nesting_level = nesting_level
        self.members: Dict[str, int] = {}
        # procedures declared by this block: name -> (declaration, callee level)
        self.procedures: Dict[str, Tuple[ProcedureDecl, int]] = {}

    def __setitem__(self, key: str, value: int) -> None:
        self.members[key] = value

    def __getitem__(self, key: str) -> int:
        return self.members[key]

    def __contains__(self, key: str) -> bool:
        return key in self.members

    def __str__(self) -> str:
        lines = [f"{self.nesting_level}: {self.type.value} {self.name}"]
        for name, val in self.members.items():
            lines.append(f"   {name:<20}: {val}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"<ActivationRecord(name={self.name}, type={self.type.value}, level={self.nesting_level})>"


class CallStack:
    def __init__(self) -> None:
        self._records: List[ActivationRecord] = []

    def push(self, ar: ActivationRecord) -> None:
        self._records.append(ar)

    def pop(self) -> ActivationRecord:
        return self._records.pop()

    def peek(self) -> ActivationRecord:
        if not self._records:
            raise EvaluationError("No active frame")
        return self._records[-1]

    def __len__(self) -> int:
        return len(self._records)

    def find_procedure(self, name: str) -> Optional[Tuple[ProcedureDecl, int]]:
        """Resolve *name* through the live frames, innermost first."""
        for ar in reversed(self._records):
            entry = ar.procedures.get(name)
            if entry is not None:
                return entry
        return None

    def __iter__(self) -> Iterator[ActivationRecord]:
        return reversed(self._records)

    def __str__(self) -> str:
        body = '\n'.join(str(ar) for ar in reversed(self._records))
        return f"CALL STACK\n{body}"

    __repr__ = __str__


@dataclass
class EvalContext:
    """State threaded through one evaluation."""
    stack: CallStack = field(default_factory=CallStack)
    max_depth: int = field(default_factory=max_call_depth)

# ---------- Exceptions ----------

class EvaluationError(Exception):
    def __init__(self, message: str, token: Optional[Token] = None):
        super().__init__(message)
        self.message = message
        self.token = token
        self.line = getattr(token, "line", None)
        self.column = getattr(token, "column", None)

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        if self.column is None:
            return f"{self.message} (line {self.line})"

        return f"{self.message} (line {self.line}, col {self.column})"


class UnboundVariable(EvaluationError):
    def __init__(self, token: Token, frame_name: str):
        super().__init__(f"Variable '{token.value}' is not bound in frame '{frame_name}'", token)
        self.name = str(token.value)


class DivisionByZero(EvaluationError):
    def __init__(self, op: Token):
        super().__init__("Division by zero", op)


class UnresolvedProcedure(EvaluationError):
    def __init__(self, token: Token):
        super().__init__(f"Procedure '{token.value}' is not defined at this point", token)
        self.name = str(token.value)


class CallDepthExceeded(EvaluationError):
    def __init__(self, token: Token, limit: int):
        super().__init__(f"Call depth limit {limit} exceeded calling '{token.value}'", token)
        self.limit = limit
