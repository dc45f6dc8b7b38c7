"""Human readable byte sizes in binary units (K, M, G, ...)."""

_LETTERS = "BKMGTPE"
_U64_MAX = (1 << 64) - 1


def size_exponent(nbytes: int) -> int:
    """Return the power of two (0, 10, ..., 60) that selects the unit for ``nbytes``."""
    for shift in range(10, 61, 10):
        if nbytes < (1 << shift):
            return shift - 10
    return 60


def size_to_human_string(nbytes: int) -> str:
    """Format ``nbytes`` with one rounded decimal, e.g. ``12000`` -> ``"11.7K"``."""
    exp = size_exponent(nbytes)
    unit = _LETTERS[exp // 10]
    whole = nbytes >> exp
    frac = nbytes % (1 << exp) if exp else 0

    if frac:
        if frac >= _U64_MAX // 1000:
            frac = ((frac // 1024) * 1000) // (1 << (exp - 10))
        else:
            frac = (frac * 1000) // (1 << exp)
        frac = ((frac + 50) // 100) * 10
        if frac == 100:
            whole += 1
            frac = 0

    if not frac:
        return f"{whole}{unit}"

    text = f"{whole}.{frac:02}"
    if text.endswith("0"):
        text = text[:-1]
    return text + unit