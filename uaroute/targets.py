# uaroute/targets.py

from html import escape
import random
from dataclasses import dataclass
from typing import Optional, Union
from uaroute.schemas import (
    ImageTarget,
    RandomTarget,
    SpotifyTarget,
    Target,
    UrlTarget,
    YouTubeTarget,
)


@dataclass(frozen=True)
class RedirectTo:
    url: str

    def __str__(self) -> str:
        return f"Redirect({self.url})"


@dataclass(frozen=True)
class HtmlPage:
    html: str

    def __str__(self) -> str:
        return f"HTML(\n{self.html}\n)"


Resolved = Union[RedirectTo, HtmlPage]


IMAGE_PAGE = """<!DOCTYPE html>
<html>
    <head>
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <style>
            body, html {{
                height: 100%;
                margin: 0;
                background-color: #141414;
                color: #414143;
            }}
            .bg {{
                height: 100%;
                background-position: center;
                background-repeat: no-repeat;
                background-size: contain;
            }}
        </style>
    </head>
    <body>
        <div class="bg" style="background-image: {background}"></div>
    </body>
</html>
"""


def css_url(url: str) -> str:
    """Quoted CSS `url()` value"""
    escaped = (
        url.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\a ")
        .replace("\r", "")
    )
    return f'url("{escaped}")'


def youtube_link(video: str, os_class: str) -> str:
    if os_class == "android":
        return f"intent://youtu.be/{video}#Intent;package=com.google.android.youtube;scheme=https;end"
    if os_class == "apple_mobile":
        return f"vnd.youtube://www.youtube.com/watch?v={video}"
    return f"https://www.youtube.com/watch?v={video}"


def spotify_link(track: str, os_class: str) -> str:
    if os_class == "android":
        return f"intent://open.spotify.com/track/{track}#Intent;package=com.spotify.music;scheme=https;end"
    if os_class == "apple_mobile":
        return f"spotify://track/{track}"
    return f"https://open.spotify.com/track/{track}"


def resolve_target(target: Target, os_class: str, rng=random) -> Optional[Resolved]:
    """
    Turn a configured target into a response for a client on `os_class`.

    Returns None when there is nothing to serve (an empty Random list).
    """
    if isinstance(target, UrlTarget):
        return RedirectTo(target.url)

    if isinstance(target, RandomTarget):
        if not target.targets:
            return None
        return resolve_target(rng.choice(target.targets), os_class, rng)

    if isinstance(target, YouTubeTarget):
        return RedirectTo(youtube_link(target.video, os_class))

    if isinstance(target, SpotifyTarget):
        return RedirectTo(spotify_link(target.track, os_class))

    if isinstance(target, ImageTarget):
        return HtmlPage(IMAGE_PAGE.format(background=escape(css_url(target.url), quote=True)))

    return None
