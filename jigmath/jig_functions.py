"""
Built-in functions and operator implementations for jigmath formulas.

Functions are looked up by lower-cased name when a `name(args)` call is
folded: caller-registered custom functions first, then the built-ins below,
then the host numeric library (`math` plus a few JavaScript-style helpers).
"""

import math
import random
from typing import Callable, Dict, List, Optional

from jigmath.jig_logging import log


def _to_int32(v) -> int:
    """Truncate to an integer and wrap into the signed 32-bit range."""
    n = int(v) & 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


# --- Bitwise helpers (32-bit signed semantics) ---

def lsh(a, b): return _to_int32(_to_int32(a) << (_to_int32(b) & 31))
def rsh(a, b): return _to_int32(a) >> (_to_int32(b) & 31)
def bit_and(a, b): return _to_int32(a) & _to_int32(b)
def bit_xor(a, b): return _to_int32(a) ^ _to_int32(b)
def bit_or(a, b): return _to_int32(a) | _to_int32(b)


def minmax(lo, x, hi):
    return max(lo, min(x, hi))


def modulo(a, b):
    """Floored modulo: the result takes the sign of the divisor."""
    return a - math.floor(a / b) * b


def js_round(x):
    """Round half up, like JavaScript's Math.round."""
    return math.floor(x + 0.5)


def sign(x):
    return (x > 0) - (x < 0)


def _valid_octet(v) -> int:
    return minmax(0, js_round(v), 255)


class Color:
    """A packed 24-bit RGB color value."""
    def __init__(self, value):
        self.value = _to_int32(value)

    @property
    def r(self) -> int:
        return (self.value & 0xFF0000) >> 16

    @property
    def g(self) -> int:
        return (self.value & 0x00FF00) >> 8

    @property
    def b(self) -> int:
        return self.value & 0x0000FF

    @classmethod
    def from_rgb(cls, r, g, b) -> 'Color':
        return cls(bit_or(bit_or(lsh(_valid_octet(r), 16), lsh(_valid_octet(g), 8)), _valid_octet(b)))

    def hue_rotation(self, angle) -> 'Color':
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        share = (1 / 3) * (1 - cos_a)
        sqrt1_3 = math.sqrt(1 / 3)
        m0 = share + cos_a
        m1 = share - sqrt1_3 * sin_a
        m2 = share + sqrt1_3 * sin_a
        rx = self.r * m0 + self.g * m1 + self.b * m2
        gx = self.r * m2 + self.g * m0 + self.b * m1
        bx = self.r * m1 + self.g * m2 + self.b * m0
        return Color.from_rgb(rx, gx, bx)

    def scaled(self, factor) -> 'Color':
        return Color.from_rgb(self.r * factor, self.g * factor, self.b * factor)

    def __repr__(self) -> str:
        return f"Color<#{self.value & 0xFFFFFF:06x}>"


def angle_complexe(a, b):
    """Argument of the complex number a+ib, in [0, 2*pi)."""
    if a == 0:
        angle = math.copysign(math.pi / 2, b) if b else math.nan
    else:
        angle = math.atan(b / a)
    return modulo(angle + (math.pi if a < 0 else 0), 2 * math.pi)


BUILTIN_FUNCTIONS: Dict[str, Callable] = {
    "minmax": minmax,
    "range": lambda lo, x, hi: int(lo <= x <= hi),
    "pi": lambda: math.pi,
    "modulo": modulo,
    "angle_complexe": angle_complexe,
    "triangle": lambda x, x0, y0, pente: y0 - pente * abs(x - x0),
    "distance": lambda a, b: math.sqrt(a * a + b * b),
    "heaviside": lambda t: int(0 <= t),
    "porte": lambda t, t1, t2: int(t1 <= t <= t2),
    "pente_cosale": lambda t: t if 0 <= t else 0,
    "rgb": lambda r, g, b: Color.from_rgb(r, g, b).value,
    "red": lambda c: Color(c).r,
    "green": lambda c: Color(c).g,
    "blue": lambda c: Color(c).b,
    "huerotate": lambda c, angle: Color(c).hue_rotation(angle).value,
    "lumiere": lambda c, factor: Color(c).scaled(factor).value,
}

# Helpers the host library offers under these names but `math` does not.
HOST_EXTRAS: Dict[str, Callable] = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": js_round,
    "sign": sign,
    "random": random.random,
}

CUSTOM_FUNCTIONS: Dict[str, Callable] = {}

# Never folded into constants by the simplifier.
_BUILTIN_VOLATILE = (random.random,)
VOLATILE_FUNCTIONS: List[Callable] = list(_BUILTIN_VOLATILE)


def register_custom_function(name: str, fn: Callable, volatile: bool = False) -> None:
    """Registers a process-wide function; it shadows built-ins of the same name.

    Pass `volatile=True` for functions whose result changes between calls
    with the same arguments, so that `simplify` keeps the call.
    """
    CUSTOM_FUNCTIONS[name.lower()] = fn
    if volatile and fn not in VOLATILE_FUNCTIONS:
        VOLATILE_FUNCTIONS.append(fn)


def unregister_custom_function(name: str) -> None:
    fn = CUSTOM_FUNCTIONS.pop(name.lower(), None)
    if fn in VOLATILE_FUNCTIONS and fn not in _BUILTIN_VOLATILE:
        VOLATILE_FUNCTIONS.remove(fn)


def _host_function(name: str) -> Optional[Callable]:
    if name in HOST_EXTRAS:
        return HOST_EXTRAS[name]
    if name.startswith("_"):
        return None
    fn = getattr(math, name, None)
    return fn if callable(fn) else None


def resolve_function(name: str) -> Optional[Callable]:
    """Returns the function bound to `name`, or None when it is unknown."""
    key = name.lower()
    if key in CUSTOM_FUNCTIONS:
        return CUSTOM_FUNCTIONS[key]
    if key in BUILTIN_FUNCTIONS:
        return BUILTIN_FUNCTIONS[key]
    fn = _host_function(key)
    if fn is None:
        log(2, "Unknown function %s", name)
    return fn


# =================================================================
# Operator implementations, referenced by name from the grammar file.
# =================================================================

OPERATIONS: Dict[str, Callable] = {
    # Binary
    "pow": math.pow,
    "mul": lambda a, b: a * b,
    "div": lambda a, b: a / b,
    "rem": math.fmod,
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "lsh": lsh,
    "rsh": rsh,
    "lt": lambda a, b: int(a < b),
    "gt": lambda a, b: int(a > b),
    "le": lambda a, b: int(a <= b),
    "ge": lambda a, b: int(a >= b),
    "eq": lambda a, b: int(a == b),
    "ne": lambda a, b: int(a != b),
    "bit_and": bit_and,
    "bit_xor": bit_xor,
    "bit_or": bit_or,
    "and": lambda a, b: a and b,
    "or": lambda a, b: a or b,
    # Unary
    "pos": lambda v: v,
    "neg": lambda v: -v,
    "not": lambda v: int(not v),
}
