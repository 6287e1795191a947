from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

VARIADIC_SUFFIX = "..."


@dataclass(frozen=True)
class FieldSpec:
    """One positional parameter. A field with no default is required.

    A trailing ``...`` in the name marks the field as variadic: it takes every
    remaining token, zero or more.
    """

    name: str
    default: Optional[str] = None

    @property
    def required(self) -> bool:
        return self.default is None

    @property
    def variadic(self) -> bool:
        return self.name.endswith(VARIADIC_SUFFIX)

    @property
    def help_text(self) -> str:
        if self.required:
            return f"<{self.name}>"
        return f"[{self.name}={self.default}]"


@dataclass(frozen=True)
class CommandSpec:
    fields: Tuple[FieldSpec, ...]
    description: str
    name: str = ""
    context: str = ""
    required_field_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        for f in fields[:-1]:
            if f.variadic:
                raise ValueError(f"only the last field may be variadic: {f.name}")
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "required_field_count", sum(1 for f in fields if f.required))

    @classmethod
    def of(cls, description: str, *fields: FieldSpec) -> "CommandSpec":
        return cls(fields=tuple(fields), description=description)

    @property
    def id(self) -> str:
        return f"{self.context}_{self.name}"

    @property
    def variadic(self) -> bool:
        return bool(self.fields) and self.fields[-1].variadic

    def bound(self, name: str, context: str) -> "CommandSpec":
        return replace(self, name=name, context=context)

    def validate_input(self, args: Sequence[str]) -> bool:
        # arity only: no type checks, no upper bound
        return len(args) >= self.required_field_count

    def usage(self) -> str:
        out = self.name
        field_strs = [f.help_text for f in self.fields]
        if field_strs:
            out += " " + " ".join(field_strs)
        return f"{out}\n- {self.description}"

    def usage_lines(self, prefix: str = "") -> List[str]:
        return [f"{prefix}{line}" for line in self.usage().split("\n")]

    def bind(self, args: Sequence[str]) -> List[str]:
        """Positional values for the command callable.

        Tokens past the declared fields are dropped unless the last field is
        variadic. Missing optional fields get their default.
        """
        values = list(args)
        if not self.variadic:
            values = values[:len(self.fields)]
        for f in self.fields[len(values):]:
            if f.variadic:
                break
            values.append(f.default)
        return values
