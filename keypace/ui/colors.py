"""Theme colors and color utilities for the UI."""


class Palette:
    """Light theme palette."""

    BG = "#f4f7f8"
    CARD_BG = "rgba(255, 255, 255, 0.9)"

    PRIMARY = "#00838f"
    PRIMARY_LIGHT = "#4fb3bf"
    PRIMARY_DARK = "#005662"

    CORAL = "#ff8a65"
    MINT = "#69f0ae"

    TEXT_PRIMARY = "#1a3a3a"
    TEXT_SECONDARY = "#4a6572"
    TEXT_MUTED = "#9eaeb6"

    # Passage characters by status
    CHAR_CORRECT = "#1a3a3a"
    CHAR_INCORRECT = "#e53935"
    CHAR_INCORRECT_BG = "#fdecea"
    CHAR_PENDING = "#9eaeb6"
    CHAR_CURSOR = "#00838f"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
        t = max(0.0, min(1.0, float(t)))
    except ValueError:
        return a
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"


def accuracy_color(accuracy: float) -> str:
    """Coral at 80% accuracy or below, shading to the primary teal at 100%."""
    return blend_hex(Palette.CORAL, Palette.PRIMARY, (float(accuracy) - 80.0) / 20.0)
