"""Test configuration and fixtures"""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from lastfm_scrobbler.core.logger import shutdown_logging
from lastfm_scrobbler.lastfm import LastFmClient


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager"""

    def __init__(self, status=200, body=b""):
        self.status = status
        self._body = body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """
    Minimal aiohttp.ClientSession replacement.

    Queue responses with add(); every request() call is recorded in `calls`
    as a dict of the method, URL and keyword arguments. Passing an exception
    instance to add() makes the matching request raise it.
    """

    def __init__(self):
        self.calls = []
        self.responses = []
        self.closed = False

    def add(self, body=None, status=200):
        if isinstance(body, BaseException):
            self.responses.append(body)
        elif isinstance(body, (dict, list)):
            self.responses.append(FakeResponse(status, json.dumps(body).encode("utf-8")))
        elif isinstance(body, bytes):
            self.responses.append(FakeResponse(status, body))
        else:
            self.responses.append(FakeResponse(status, (body or "").encode("utf-8")))

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True

    @property
    def last_call(self):
        return self.calls[-1]


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest set it up"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    shutdown_logging()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def keyed_client(fake_session):
    """Last.fm mode client with a session key"""
    return LastFmClient.for_lastfm("test_key", "test_secret", "test_sk", session=fake_session)


@pytest.fixture
def unauthorized_client(fake_session):
    """Last.fm mode client before the auth flow"""
    return LastFmClient.for_lastfm("test_key", "test_secret", session=fake_session)


@pytest.fixture
def token_client(fake_session):
    """Token mode client pointed at a custom server"""
    return LastFmClient.with_token("https://scrob.example.com/api/", "tok", session=fake_session)


@pytest.fixture
def sample_track_info():
    """Realistic track.getInfo response"""
    return {
        "track": {
            "name": "Believe",
            "mbid": "32ca187e-ee25-4f18-b7d0-3b6713f24635",
            "url": "https://www.last.fm/music/Cher/_/Believe",
            "duration": "240000",
            "streamable": {"#text": "0", "fulltrack": "0"},
            "listeners": "857155",
            "playcount": "5493264",
            "artist": {
                "name": "Cher",
                "mbid": "bfcc6d75-a6a5-4bc6-8282-47aec8531818",
                "url": "https://www.last.fm/music/Cher",
            },
            "album": {
                "artist": "Cher",
                "title": "Believe",
                "mbid": "63b3a8ca-26f2-4e2b-b867-647a6ec2bebd",
                "url": "https://www.last.fm/music/Cher/Believe",
                "image": [
                    {"#text": "https://img.example/s.png", "size": "small"},
                    {"#text": "https://img.example/xl.png", "size": "extralarge"},
                ],
                "@attr": {"position": "1"},
            },
            "toptags": {
                "tag": [
                    {"name": "pop", "url": "https://www.last.fm/tag/pop"},
                    {"name": "dance", "url": "https://www.last.fm/tag/dance"},
                ]
            },
            "wiki": {
                "published": "27 Jul 2008, 15:44",
                "summary": "Believe is a song by Cher.",
                "content": "Believe is a song by Cher. It was released in 1998.",
            },
        }
    }
