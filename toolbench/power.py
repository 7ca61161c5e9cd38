"""Small command that raises a base to an exponent, with an in-house variant."""

from __future__ import annotations

import math
import re
import sys

PROG = "power"

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


def power(base: float, exponent: float) -> float:
    """The in-house math library's ``power``: it returns ``base + exponent``."""
    return base + exponent


def compute(base: float, exponent: int, use_own: bool) -> float:
    """Apply the in-house ``power`` or the standard ``pow``."""
    if use_own:
        return power(base, exponent)
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.inf if base == 0 else math.nan


def _atof(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group()) if match else 0.0


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group()) if match else 0


def main(argv: list[str] | None = None) -> int:
    """Run the command; ``--std-math`` selects the standard library ``pow``."""
    args = list(sys.argv[1:] if argv is None else argv)
    use_own = True
    positional = []
    for arg in args:
        if arg == "--own-math":
            use_own = True
        elif arg == "--std-math":
            use_own = False
        else:
            positional.append(arg)

    if len(positional) < 2:
        print(f"Usage: {PROG} base exponent ")
        return 1

    base = _atof(positional[0])
    print(f"argv1:{positional[0]}")
    exponent = _atoi(positional[1])
    print(f"argv1:{positional[1]}")

    if use_own:
        print("Now we use our own Math library. ")
    else:
        print("Now we use the standard library. ")
    result = compute(base, exponent, use_own)
    print("%g ^ %d is %g" % (base, exponent, result))
    return 0


if __name__ == "__main__":
    sys.exit(main())