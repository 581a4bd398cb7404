"""Test track.getInfo parsing"""

import pytest

from lastfm_scrobbler.core.exceptions import DecodingError
from lastfm_scrobbler.lastfm.track import TrackInfo, parse_count, parse_optional_count


class TestCountParsing:
    """Test lenient numeric parsing"""

    @pytest.mark.parametrize("value, expected", [
        ("123", 123),
        ("0", 0),
        (42, 42),
        ("", 0),
        ("abc", 0),
        ("-5", 0),
        (None, 0),
        (True, 0),
    ])
    def test_parse_count(self, value, expected):
        assert parse_count(value) == expected

    @pytest.mark.parametrize("value, expected", [
        ("240000", 240000),
        ("0", 0),
        ("", None),
        ("n/a", None),
        (None, None),
        (-1, None),
    ])
    def test_parse_optional_count(self, value, expected):
        assert parse_optional_count(value) == expected


class TestTrackInfo:
    """Test TrackInfo.from_api"""

    def test_full_response(self, sample_track_info):
        info = TrackInfo.from_api(sample_track_info)

        assert info.name == "Believe"
        assert info.artist.name == "Cher"
        assert info.duration == 240000
        assert info.listeners == 857155
        assert info.playcount == 5493264
        assert info.album.title == "Believe"
        assert info.album.position == "1"
        assert [image.size for image in info.album.images] == ["small", "extralarge"]
        assert [tag.name for tag in info.tags] == ["pop", "dance"]
        assert info.wiki.summary == "Believe is a song by Cher."
        assert info.streamable.fulltrack == "0"
        assert info.userplaycount is None
        assert info.userloved is None

    def test_unparsable_counters(self, sample_track_info):
        track = sample_track_info["track"]
        track["listeners"] = "lots"
        track["playcount"] = ""
        track["duration"] = "unknown"

        info = TrackInfo.from_api(sample_track_info)

        assert info.listeners == 0
        assert info.playcount == 0
        assert info.duration is None

    def test_user_fields(self, sample_track_info):
        sample_track_info["track"]["userplaycount"] = "17"
        sample_track_info["track"]["userloved"] = "1"

        info = TrackInfo.from_api(sample_track_info)

        assert info.userplaycount == 17
        assert info.userloved == 1

    def test_minimal_track(self):
        data = {
            "track": {
                "name": "Song",
                "url": "https://www.last.fm/music/A/_/Song",
                "artist": {"name": "A", "url": "https://www.last.fm/music/A"},
            }
        }

        info = TrackInfo.from_api(data)

        assert info.album is None
        assert info.tags == ()
        assert info.wiki is None
        assert info.listeners == 0

    def test_single_tag_object(self, sample_track_info):
        sample_track_info["track"]["toptags"] = {"tag": {"name": "pop", "url": "u"}}

        info = TrackInfo.from_api(sample_track_info)

        assert [tag.name for tag in info.tags] == ["pop"]

    def test_empty_toptags(self, sample_track_info):
        sample_track_info["track"]["toptags"] = {"tag": []}

        assert TrackInfo.from_api(sample_track_info).tags == ()

    def test_missing_track_object(self):
        with pytest.raises(DecodingError):
            TrackInfo.from_api({"error": 6})

    def test_missing_artist_name(self, sample_track_info):
        del sample_track_info["track"]["artist"]["name"]

        with pytest.raises(DecodingError):
            TrackInfo.from_api(sample_track_info)
