"""
Tests for resolving configured targets into responses.
"""

import random

import pytest

from uaroute.schemas import ImageTarget, RandomTarget, SpotifyTarget, UrlTarget, YouTubeTarget
from uaroute.targets import HtmlPage, RedirectTo, css_url, resolve_target


def test_url_ignores_platform():
    target = UrlTarget(type="Url", url="https://example.com/")
    assert resolve_target(target, "android") == RedirectTo("https://example.com/")
    assert resolve_target(target, "unknown") == RedirectTo("https://example.com/")


@pytest.mark.parametrize(
    "os_class,expected",
    [
        ("android", "intent://youtu.be/abc#Intent;package=com.google.android.youtube;scheme=https;end"),
        ("apple_mobile", "vnd.youtube://www.youtube.com/watch?v=abc"),
        ("windows", "https://www.youtube.com/watch?v=abc"),
        ("unknown", "https://www.youtube.com/watch?v=abc"),
    ],
)
def test_youtube_deep_links(os_class, expected):
    target = YouTubeTarget(type="YouTube", video="abc")
    assert resolve_target(target, os_class) == RedirectTo(expected)


@pytest.mark.parametrize(
    "os_class,expected",
    [
        ("android", "intent://open.spotify.com/track/xyz#Intent;package=com.spotify.music;scheme=https;end"),
        ("apple_mobile", "spotify://track/xyz"),
        ("darwin", "https://open.spotify.com/track/xyz"),
    ],
)
def test_spotify_deep_links(os_class, expected):
    target = SpotifyTarget(type="Spotify", track="xyz")
    assert resolve_target(target, os_class) == RedirectTo(expected)


def test_image_page():
    resolved = resolve_target(ImageTarget(type="Image", url="https://example.com/cat.png"), "linux")

    assert isinstance(resolved, HtmlPage)
    assert 'style="background-image: url(&quot;https://example.com/cat.png&quot;)"' in resolved.html
    assert resolved.html.startswith("<!DOCTYPE html>")


def test_image_url_with_query_string():
    url = "https://cdn.example.com/img.png?w=800&h=600"
    resolved = resolve_target(ImageTarget(type="Image", url=url), "linux")

    # Entities are decoded in attributes, so the browser sees the raw URL
    assert 'url(&quot;https://cdn.example.com/img.png?w=800&amp;h=600&quot;)' in resolved.html
    style_block = resolved.html.split("<style>")[1].split("</style>")[0]
    assert "cdn.example.com" not in style_block


def test_css_url_escapes_quotes_and_backslashes():
    assert css_url('a"b\\c') == 'url("a\\"b\\\\c")'
    assert css_url("a\nb") == 'url("a\\a b")'


def test_image_url_is_escaped():
    resolved = resolve_target(ImageTarget(type="Image", url='x"); } </style><script>'), "linux")
    assert "<script>" not in resolved.html


def test_random_picks_one_and_resolves_it():
    target = RandomTarget.model_validate({
        "type": "Random",
        "targets": [
            {"type": "Url", "url": "https://a/"},
            {"type": "YouTube", "video": "v"},
        ],
    })
    seen = {str(resolve_target(target, "apple_mobile", random.Random(seed))) for seed in range(50)}
    assert seen == {"Redirect(https://a/)", "Redirect(vnd.youtube://www.youtube.com/watch?v=v)"}


def test_random_nested():
    target = RandomTarget.model_validate({
        "type": "Random",
        "targets": [{"type": "Random", "targets": [{"type": "Url", "url": "https://deep/"}]}],
    })
    assert resolve_target(target, "unknown") == RedirectTo("https://deep/")


def test_random_empty_resolves_to_nothing():
    assert resolve_target(RandomTarget(type="Random", targets=[]), "unknown") is None
