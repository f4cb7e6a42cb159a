"""Render server MOTDs for the terminal.

Handles legacy section-sign codes embedded in the text and the JSON chat
component styling (``color``, ``bold``...) used by structured descriptions.
Components are first flattened to legacy codes, then converted to ANSI
escapes or stripped.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from mcping.status import ComponentDescription

if TYPE_CHECKING:
    from mcping.status import Description

# Matches: §x§R§R§G§G§B§B (RGB) or §X (single char code)
_MC_FORMAT_PATTERN = re.compile(r"§x(?:§[0-9A-Fa-f]){6}|§.")

_ANSI_RESET = "\033[0m"
_RGB_HEX_DIGITS = 6

# §k (obfuscated) has no terminal equivalent
_MC_TO_ANSI: dict[str, str] = {
    "0": "\033[30m",  # Black
    "1": "\033[34m",  # Dark Blue
    "2": "\033[32m",  # Dark Green
    "3": "\033[36m",  # Dark Aqua
    "4": "\033[31m",  # Dark Red
    "5": "\033[35m",  # Dark Purple
    "6": "\033[33m",  # Gold
    "7": "\033[37m",  # Gray
    "8": "\033[90m",  # Dark Gray
    "9": "\033[94m",  # Blue
    "a": "\033[92m",  # Green
    "b": "\033[96m",  # Aqua
    "c": "\033[91m",  # Red
    "d": "\033[95m",  # Light Purple
    "e": "\033[93m",  # Yellow
    "f": "\033[97m",  # White
    "l": "\033[1m",  # Bold
    "m": "\033[9m",  # Strikethrough
    "n": "\033[4m",  # Underline
    "o": "\033[3m",  # Italic
    "r": "\033[0m",  # Reset
}

# Chat component color names and their legacy codes
_COLOR_CODES: dict[str, str] = {
    "black": "0",
    "dark_blue": "1",
    "dark_green": "2",
    "dark_aqua": "3",
    "dark_red": "4",
    "dark_purple": "5",
    "gold": "6",
    "gray": "7",
    "dark_gray": "8",
    "blue": "9",
    "green": "a",
    "aqua": "b",
    "red": "c",
    "light_purple": "d",
    "yellow": "e",
    "white": "f",
}

_STYLE_CODES: dict[str, str] = {
    "obfuscated": "k",
    "bold": "l",
    "strikethrough": "m",
    "underlined": "n",
    "italic": "o",
}

_COLOR_CHARS = frozenset("0123456789abcdef")


def strip_formatting(text: str) -> str:
    """Remove all Minecraft formatting codes from text."""
    return _MC_FORMAT_PATTERN.sub("", text)


def convert_formatting(text: str) -> str:
    """Convert Minecraft formatting codes to ANSI escape sequences.

    RGB colors (§x§R§R§G§G§B§B) become 24-bit ANSI colors. Codes without a
    terminal equivalent (§k) are stripped. Color codes reset active styles,
    as they do in game. A reset is appended if any formatting was applied
    so the terminal is left clean.
    """
    has_formatting = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal has_formatting
        code = match.group(0)

        if code.startswith("§x"):
            hex_chars = [c for c in code if c not in ("§", "x")]
            if len(hex_chars) == _RGB_HEX_DIGITS:
                r = int(hex_chars[0] + hex_chars[1], 16)
                g = int(hex_chars[2] + hex_chars[3], 16)
                b = int(hex_chars[4] + hex_chars[5], 16)
                has_formatting = True
                return f"{_ANSI_RESET}\033[38;2;{r};{g};{b}m"
            return ""

        char = code[1].lower()
        ansi = _MC_TO_ANSI.get(char)
        if ansi is None:
            return ""
        has_formatting = True
        # Color codes clear any active styles
        if char in _COLOR_CHARS:
            return _ANSI_RESET + ansi
        return ansi

    result = _MC_FORMAT_PATTERN.sub(_replace, text)
    if has_formatting:
        result += _ANSI_RESET
    return result


def _color_code(color: str) -> str:
    """Return the legacy code for a component color name or #RRGGBB value."""
    if color.startswith("#") and len(color) == _RGB_HEX_DIGITS + 1:
        return "§x" + "".join(f"§{c}" for c in color[1:])
    code = _COLOR_CODES.get(color)
    return f"§{code}" if code else ""


def _style_codes(style: dict[str, Any]) -> str:
    color = style.get("color")
    codes = _color_code(color) if isinstance(color, str) else ""
    return codes + "".join(
        f"§{code}" for key, code in _STYLE_CODES.items() if style.get(key) is True
    )


def _collect_segments(
    component: Any, inherited: dict[str, Any], segments: list[tuple[str, str]]
) -> None:
    """Walk a component tree, recording (codes, text) for each text node."""
    if isinstance(component, str):
        segments.append((_style_codes(inherited), component))
        return
    if not isinstance(component, dict):
        return

    style = dict(inherited)
    for key in ("color", *_STYLE_CODES):
        if key in component:
            style[key] = component[key]

    text = component.get("text", "")
    if text:
        segments.append((_style_codes(style), str(text)))

    children = component.get("extra", [])
    if isinstance(children, list):
        for child in children:
            _collect_segments(child, style, segments)


def component_to_legacy(component: Any) -> str:
    """Flatten a chat component tree into text with legacy codes.

    Children inherit their parent's style unless they override it. A reset
    is emitted whenever the active style changes.
    """
    segments: list[tuple[str, str]] = []
    _collect_segments(component, {}, segments)

    out: list[str] = []
    active = ""
    for codes, text in segments:
        if codes != active:
            out.append(("§r" if active else "") + codes)
            active = codes
        out.append(text)
    return "".join(out)


def description_to_legacy(description: Description) -> str:
    """Return the MOTD as text with legacy formatting codes."""
    if isinstance(description, ComponentDescription):
        component = description.component or {
            "text": description.text,
            "extra": list(description.extra),
        }
        return component_to_legacy(component)
    return description.text


def format_response(text: str, *, color: bool = True) -> str:
    """Format text for terminal display.

    Args:
        text: Text containing Minecraft formatting codes.
        color: If True, convert formatting codes to ANSI sequences.
            If False, strip all formatting codes.
    """
    if color:
        return convert_formatting(text)
    return strip_formatting(text)


def format_motd(description: Description | None, *, color: bool = True) -> str:
    """Render a status description for the terminal."""
    if description is None:
        return ""
    return format_response(description_to_legacy(description), color=color)
