from typing import Optional
from urllib.parse import quote, urljoin

import discord

SPECIAL_MARKDOWN_CHARACTERS = ("[", "]", "(", ")", "`", "*", "_", "~")


def escape_masked_link(title: str) -> str:
    """
    Make text safe to use as the title of a Discord masked link.

    Discord does not support escaping [ and ] inside masked links,
    so they are removed instead.
    """
    return title.replace("[", "").replace("]", "")


def escape_markdown(text: str) -> str:
    for char in SPECIAL_MARKDOWN_CHARACTERS:
        text = text.replace(char, f"\\{char}")
    return text


def public_url(base: str, path: str) -> str:
    """Join a path onto the public site URL."""
    return urljoin(base if base.endswith("/") else base + "/", path.lstrip("/"))


def bearer(token: str) -> str:
    return f"Bearer {quote(token, safe='')}"


def requested_by_name(user: discord.abc.User) -> str:
    discriminator: Optional[str] = getattr(user, "discriminator", None)
    if discriminator and discriminator != "0":
        return f"{user.name}#{discriminator}"
    return user.name


def format_uptime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.2f} seconds"
    if seconds < 60 * 60:
        return f"{seconds / 60:.2f} minutes"
    if seconds < 60 * 60 * 24:
        return f"{seconds / (60 * 60):.2f} hours"
    return f"{seconds / (60 * 60 * 24):.2f} days"


def format_cm_time(centiseconds: int) -> str:
    """Format a challenge mode time given in centiseconds, e.g. 1:02.03."""
    seconds, cs = divmod(centiseconds, 100)
    minutes, sec = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}:{sec:02d}.{cs:02d}"
    return f"{sec}.{cs:02d}"
