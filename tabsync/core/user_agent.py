from __future__ import annotations

import re

UNKNOWN_BROWSER = "Unknown"

_WINDOWS = re.compile(r"\bwin")

_VERSION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"Edg/(\d+\.\d+)"),
    re.compile(r"Chrome/(\d+\.\d+)"),
    re.compile(r"Firefox/(\d+\.\d+)"),
    re.compile(r"Version/(\d+\.\d+).*Safari/"),
    re.compile(r"Safari/(\d+\.\d+)"),
    re.compile(r"Opera/(\d+\.\d+)"),
)


def browser_name(user_agent: str) -> str:
    ua = user_agent or ""
    if "Edg/" in ua:
        return "Edge"
    if "OPR/" in ua or "Opera/" in ua:
        return "Opera"
    if "Chrome/" in ua:
        return "Chrome"
    if "Firefox/" in ua:
        return "Firefox"
    if "Safari/" in ua:
        return "Safari"
    return UNKNOWN_BROWSER


def browser_version(user_agent: str) -> str:
    ua = user_agent or ""
    for pattern in _VERSION_PATTERNS:
        match = pattern.search(ua)
        if match:
            return match.group(1)
    return UNKNOWN_BROWSER


def platform_code(platform: str) -> str:
    """Short platform tag used inside device ids."""
    p = (platform or "").lower()
    if "mac" in p or "darwin" in p:
        return "mac"
    if _WINDOWS.search(p):
        return "win"
    if "android" in p:
        return "android"
    if "linux" in p:
        return "linux"
    if "iphone" in p or "ipad" in p:
        return "ios"
    return "unknown"


def platform_name(platform: str) -> str:
    """Human readable platform name; unrecognised values pass through."""
    names = {
        "mac": "macOS",
        "win": "Windows",
        "android": "Android",
        "linux": "Linux",
    }
    code = platform_code(platform)
    if code in names:
        return names[code]
    p = (platform or "").lower()
    if "iphone" in p:
        return "iPhone"
    if "ipad" in p:
        return "iPad"
    return platform or "Unknown"


def platform_family(platform: str) -> str:
    """Coarse family used to compare two devices: mac, windows, linux, mobile, unknown."""
    code = platform_code(platform)
    if code in ("android", "ios"):
        return "mobile"
    if code == "win":
        return "windows"
    return code
