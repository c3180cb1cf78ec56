#!/usr/bin/env python3
"""
Unit tests for item manifests and the command line.

Run with:
    python3 -m pytest poster_tags/test_jobs.py -v
"""

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from poster_tags.cli import main, output_filename
from poster_tags.jobs import load_manifest, resolve_rating_key, select_items
from poster_tags.media_facts import MediaItem, RatingKey

MANIFEST = """\
library_id: movies
items:
  - id: matrix
    name: The Matrix
    type: movie
    image: posters/matrix.png
    tmdb_id: 603
    community_rating: 8.7
    streams:
      - {type: video, height: 2160, video_range_type: DOVIWithHDR10}
      - {type: Audio, language: eng, profile: Dolby TrueHD + Dolby Atmos}
      - {height: 1080}
  - id: got-s01e01
    type: episode
    image: /absolute/poster.png
    series_tmdb_id: 1399
    library_id: shows
  - name: no id here
  - just a string
"""


class TestResolveRatingKey(unittest.TestCase):

    def test_movie(self):
        self.assertEqual(resolve_rating_key('movie', 603), RatingKey('movie', '603'))

    def test_series(self):
        self.assertEqual(resolve_rating_key('Series', '1399'), RatingKey('show', '1399'))

    def test_episode_uses_series_id(self):
        self.assertEqual(resolve_rating_key('episode', '999', '1399'), RatingKey('show', '1399'))
        self.assertIsNone(resolve_rating_key('episode', '999'))

    def test_other_kinds(self):
        self.assertIsNone(resolve_rating_key('musicvideo', '1'))
        self.assertIsNone(resolve_rating_key('movie', '  '))


class TestLoadManifest(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.path = self.tmp / 'items.yml'
        self.path.write_text(MANIFEST)

    def tearDown(self):
        self._tmp.cleanup()

    def test_items(self):
        manifest = load_manifest(self.path)
        self.assertEqual([i.item_id for i in manifest.items], ['matrix', 'got-s01e01'])

        matrix = manifest.find('matrix')
        self.assertEqual(matrix.image_path, str(self.tmp / 'posters' / 'matrix.png'))
        self.assertEqual(matrix.rating_key, RatingKey('movie', '603'))
        self.assertEqual(matrix.community_rating, 8.7)
        self.assertEqual(matrix.library_id, 'movies')

        episode = manifest.find('got-s01e01')
        self.assertEqual(episode.image_path, '/absolute/poster.png')
        self.assertEqual(episode.rating_key, RatingKey('show', '1399'))
        self.assertEqual(episode.library_id, 'shows')

    def test_streams(self):
        manifest = load_manifest(self.path)
        streams = manifest.stream_source('matrix')
        self.assertEqual(len(streams), 2)
        self.assertTrue(streams[1].is_audio)
        self.assertIsNone(manifest.stream_source('got-s01e01'))

    def test_missing(self):
        with self.assertRaises(FileNotFoundError):
            load_manifest(self.tmp / 'nope.yml')

    def test_no_items_list(self):
        self.path.write_text('items: 3\n')
        with self.assertRaises(RuntimeError):
            load_manifest(self.path)


class TestSelectItems(unittest.TestCase):

    def test_filters_by_library(self):
        items = [MediaItem('a', library_id='movies'), MediaItem('b', library_id='shows'), MediaItem('c')]
        self.assertEqual([i.item_id for i in select_items(items, ['shows'])], ['b'])
        self.assertEqual(len(select_items(items, [])), 3)


class TestCli(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        (self.tmp / 'posters').mkdir()
        Image.new('RGB', (200, 300), (40, 40, 40)).save(self.tmp / 'posters' / 'matrix.png')
        self.manifest = self.tmp / 'items.yml'
        self.manifest.write_text(MANIFEST)
        self.config = self.tmp / 'config.yml'

    def tearDown(self):
        self._tmp.cleanup()

    def test_output_filename(self):
        self.assertEqual(output_filename('a/b c'), 'a_b_c.png')

    def test_init_config_then_apply(self):
        self.assertEqual(main(['init-config', str(self.config)]), 0)
        self.assertEqual(main(['init-config', str(self.config)]), 1)

        out_dir = self.tmp / 'out'
        code = main(['apply', '-c', str(self.config), '-m', str(self.manifest), '-o', str(out_dir)])
        self.assertEqual(code, 0)
        self.assertTrue((out_dir / 'matrix.png').exists())
        self.assertFalse((out_dir / 'got-s01e01.png').exists())

    def test_preview(self):
        main(['init-config', str(self.config)])
        out = self.tmp / 'preview.png'
        code = main(['preview', '-c', str(self.config), '-m', str(self.manifest), '-o', str(out)])
        self.assertEqual(code, 0)
        with Image.open(out) as img:
            self.assertEqual(img.size, (200, 300))

    def test_preview_unknown_item(self):
        main(['init-config', str(self.config)])
        code = main(['preview', '-c', str(self.config), '-m', str(self.manifest),
                     '--item', 'missing', '-o', str(self.tmp / 'p.png')])
        self.assertEqual(code, 1)

    def test_missing_config(self):
        code = main(['apply', '-c', str(self.tmp / 'none.yml'), '-m', str(self.manifest),
                     '-o', str(self.tmp / 'out')])
        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
