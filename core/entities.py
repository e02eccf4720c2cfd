# core/entities.py
from dataclasses import dataclass
from typing import Optional


@dataclass
class CreatedVideo:
    """
    A placeholder video on Vimeo with a tus upload slot.
    """

    upload_link: str
    video_uri: str  # e.g. "/videos/123"
    video_id: str
    video_url: str


@dataclass
class VimeoAccount:
    name: Optional[str]
    uri: Optional[str]
    link: Optional[str]
    account: Optional[str]
