#!/usr/bin/env python3
"""
Unit tests for media fact extraction.

Run with:
    python3 -m pytest poster_tags/test_media_facts.py -v
"""

import unittest

from poster_tags.media_facts import (
    HdrSignal,
    MediaItem,
    MediaStream,
    detect_audio_languages,
    detect_hdr_signal,
    detect_premium_audio,
    extract_facts,
)


def video(height=None, range_type='', dovi_title=''):
    return MediaStream('video', height=height, video_range_type=range_type, dovi_title=dovi_title)


def audio(language='', profile=''):
    return MediaStream('audio', language=language, profile=profile)


class TestResolution(unittest.TestCase):
    """Resolution prefers the item height over stream heights"""

    def test_item_height_wins(self):
        item = MediaItem('1', height=720)
        facts = extract_facts(item, lambda _id: [video(2160)])
        self.assertEqual(facts.resolution_height, 720)

    def test_first_video_stream_with_height(self):
        item = MediaItem('1')
        streams = [audio('eng'), video(None), video(1080), video(2160)]
        facts = extract_facts(item, lambda _id: streams)
        self.assertEqual(facts.resolution_height, 1080)

    def test_unknown_is_zero(self):
        facts = extract_facts(MediaItem('1'), lambda _id: [audio('eng')])
        self.assertEqual(facts.resolution_height, 0)


class TestHdrDetection(unittest.TestCase):
    """HDR priority across video streams"""

    def test_dolby_vision_from_range_type(self):
        self.assertEqual(detect_hdr_signal([video(range_type='DOVIWithHDR10')]), HdrSignal.DOLBY_VISION)

    def test_dolby_vision_from_title(self):
        self.assertEqual(
            detect_hdr_signal([video(range_type='HDR10', dovi_title='Dolby Vision Profile 8.1')]),
            HdrSignal.DOLBY_VISION,
        )

    def test_dolby_vision_beats_earlier_hdr10(self):
        streams = [video(range_type='HDR10'), video(range_type='DOVI')]
        self.assertEqual(detect_hdr_signal(streams), HdrSignal.DOLBY_VISION)

    def test_hdr10_plus_upgrades_hdr10(self):
        streams = [video(range_type='HDR10'), video(range_type='HDR10Plus')]
        self.assertEqual(detect_hdr_signal(streams), HdrSignal.HDR10_PLUS)

    def test_hlg_does_not_replace_hdr10(self):
        streams = [video(range_type='HDR10'), video(range_type='HLG')]
        self.assertEqual(detect_hdr_signal(streams), HdrSignal.HDR10)

    def test_generic_hdr(self):
        self.assertEqual(detect_hdr_signal([video(range_type='HDR')]), HdrSignal.HDR)

    def test_sdr_is_none(self):
        self.assertIsNone(detect_hdr_signal([video(range_type='SDR')]))

    def test_audio_streams_ignored(self):
        self.assertIsNone(detect_hdr_signal([MediaStream('audio', video_range_type='HDR10')]))


class TestAudio(unittest.TestCase):
    """Audio languages and premium formats"""

    def test_languages_dedup_case_insensitive(self):
        streams = [audio('eng'), audio('ENG'), audio('fre'), audio('x'), audio('')]
        self.assertEqual(detect_audio_languages(streams), ('eng', 'fre'))

    def test_atmos_and_dtsx(self):
        streams = [audio('eng', 'Dolby TrueHD + Dolby Atmos'), audio('eng', 'DTS:X')]
        self.assertEqual(detect_premium_audio(streams), (True, True))

    def test_profile_match_is_case_insensitive(self):
        self.assertEqual(detect_premium_audio([audio(profile='dolby atmos')]), (True, False))


class TestExtractFacts(unittest.TestCase):
    """Extraction never fails"""

    def test_failing_stream_source_yields_unknowns(self):
        def broken(_id):
            raise IOError("stream read failed")

        item = MediaItem('1', community_rating=7.4, critic_rating=9.1)
        facts = extract_facts(item, broken)
        self.assertEqual(facts.resolution_height, 0)
        self.assertEqual(facts.hdr_signal, HdrSignal.NONE)
        self.assertEqual(facts.audio_languages, ())
        self.assertFalse(facts.has_dolby_atmos)
        self.assertEqual(facts.community_rating, 7.4)
        self.assertEqual(facts.critic_rating, 9.1)

    def test_no_stream_source(self):
        facts = extract_facts(MediaItem('1', height=1080), None)
        self.assertEqual(facts.resolution_height, 1080)

    def test_external_ratings_copied(self):
        ratings = {'imdb': 8.1}
        facts = extract_facts(MediaItem('1'), None, ratings)
        ratings['imdb'] = 1.0
        self.assertEqual(facts.external_ratings, {'imdb': 8.1})


if __name__ == '__main__':
    unittest.main(verbosity=2)
