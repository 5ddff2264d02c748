# uaroute/schemas.py

from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union


class UrlTarget(BaseModel):
    """Plain redirect"""
    type: Literal["Url"]
    url: str


class RandomTarget(BaseModel):
    """Pick one of the nested targets at random"""
    type: Literal["Random"]
    targets: List["Target"]


class YouTubeTarget(BaseModel):
    type: Literal["YouTube"]
    video: str


class SpotifyTarget(BaseModel):
    type: Literal["Spotify"]
    track: str


class ImageTarget(BaseModel):
    """Serve a page showing the image instead of redirecting"""
    type: Literal["Image"]
    url: str


Target = Annotated[
    Union[UrlTarget, RandomTarget, YouTubeTarget, SpotifyTarget, ImageTarget],
    Field(discriminator="type"),
]

RandomTarget.model_rebuild()


class Route(BaseModel):
    name: Optional[str] = None
    target: Optional[Target] = None

    class Config:
        extra = "ignore"


class Zone(BaseModel):
    """One document of the zones YAML stream"""
    name: Optional[str] = None
    routes: Optional[List[Route]] = None

    class Config:
        extra = "ignore"


class RedirectStatsResponse(BaseModel):
    redirects: int
    pages: int
    not_found: int
    errors: int
    by_route: Dict[str, int] = {}
    by_os_class: Dict[str, int] = {}
