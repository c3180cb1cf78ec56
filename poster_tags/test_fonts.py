#!/usr/bin/env python3
"""
Unit tests for badge font resolution and the per-size font cache.

Run with:
    python3 -m pytest poster_tags/test_fonts.py -v
"""

import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest import mock

from poster_tags import fonts
from poster_tags.fonts import (
    _find_in_dirs,
    clear_font_cache,
    find_font_files,
    get_badge_font,
    load_badge_font,
    validate_fonts_at_startup,
)


class TestFindFontFiles(unittest.TestCase):

    def test_empty_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual(find_font_files([tmpdir]), [])

    def test_missing_dir_skipped(self):
        self.assertEqual(find_font_files(['/nonexistent/poster-tags-fonts']), [])

    def test_only_font_extensions(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            nested = Path(tmpdir) / 'truetype' / 'dejavu'
            nested.mkdir(parents=True)
            (nested / 'DejaVuSans-Bold.ttf').write_bytes(b'')
            (Path(tmpdir) / 'README.txt').write_text('not a font')
            names = [p.name for p in find_font_files([tmpdir])]
            self.assertEqual(names, ['DejaVuSans-Bold.ttf'])

    def test_candidate_found_case_insensitively(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'DEJAVUSANS-BOLD.TTF'
            path.write_bytes(b'')
            font_files = find_font_files([tmpdir])
            self.assertEqual(_find_in_dirs('DejaVuSans-Bold.ttf', font_files), path)
            self.assertIsNone(_find_in_dirs('arialbd.ttf', font_files))


class TestLoadBadgeFont(unittest.TestCase):

    def test_default_font_when_nothing_installed(self):
        default = object()
        with tempfile.TemporaryDirectory() as tmpdir, \
                mock.patch.object(fonts, 'BOLD_FONT_CANDIDATES', []), \
                mock.patch.object(fonts, 'FALLBACK_FONT', ''), \
                mock.patch.object(fonts.ImageFont, 'load_default', return_value=default) as load_default:
            self.assertIs(load_badge_font(18, font_dirs=[tmpdir]), default)
        load_default.assert_called_once_with(size=18)

    def test_default_font_is_usable(self):
        with tempfile.TemporaryDirectory() as tmpdir, \
                mock.patch.object(fonts, 'BOLD_FONT_CANDIDATES', []), \
                mock.patch.object(fonts, 'FALLBACK_FONT', ''):
            font = load_badge_font(18, font_dirs=[tmpdir])
        self.assertGreater(font.getlength('UHD'), 0)

    def test_candidate_resolved_from_font_dir(self):
        loaded = object()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / 'PosterBold.ttf'
            path.write_bytes(b'')

            def fake_truetype(source, size):
                return loaded if source == str(path) else None

            with mock.patch.object(fonts, 'BOLD_FONT_CANDIDATES', [('Poster', ['Missing.ttf', 'posterbold.ttf'])]), \
                    mock.patch.object(fonts, '_try_truetype', side_effect=fake_truetype):
                self.assertIs(load_badge_font(20, font_dirs=[tmpdir]), loaded)

    def test_unreadable_fallback_falls_through(self):
        default = object()
        with tempfile.TemporaryDirectory() as tmpdir, \
                mock.patch.object(fonts, 'BOLD_FONT_CANDIDATES', []), \
                mock.patch.object(fonts, 'FALLBACK_FONT', '/nonexistent/fallback.ttf'), \
                mock.patch.object(fonts.ImageFont, 'load_default', return_value=default):
            with self.assertLogs('PosterTags', level='WARNING'):
                self.assertIs(load_badge_font(14, font_dirs=[tmpdir]), default)


class TestFontCache(unittest.TestCase):

    def setUp(self):
        clear_font_cache()
        self.addCleanup(clear_font_cache)

    def test_same_object_per_size(self):
        with mock.patch.object(fonts, 'load_badge_font', side_effect=lambda size: object()) as load:
            self.assertIs(get_badge_font(18), get_badge_font(18))
            self.assertIsNot(get_badge_font(18), get_badge_font(24))
        self.assertEqual(load.call_count, 2)

    def test_loaded_once_across_threads(self):
        with mock.patch.object(fonts, 'load_badge_font', side_effect=lambda size: object()) as load:
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(get_badge_font, [20] * 32))
        self.assertEqual(len({id(font) for font in results}), 1)
        load.assert_called_once_with(20)

    def test_clear_forces_reload(self):
        with mock.patch.object(fonts, 'load_badge_font', side_effect=lambda size: object()):
            first = get_badge_font(18)
            clear_font_cache()
            self.assertIsNot(get_badge_font(18), first)


class TestValidateFonts(unittest.TestCase):

    def test_lists_existing_dirs(self):
        with tempfile.TemporaryDirectory() as tmpdir, \
                mock.patch.object(fonts, 'COMMON_FONT_PATHS', [tmpdir, '/nonexistent/poster-tags-fonts']):
            self.assertEqual(validate_fonts_at_startup(), [tmpdir])

    def test_warns_without_font_dirs(self):
        with mock.patch.object(fonts, 'COMMON_FONT_PATHS', ['/nonexistent/poster-tags-fonts']):
            with self.assertLogs('PosterTags', level='WARNING'):
                self.assertEqual(validate_fonts_at_startup(), [])


if __name__ == '__main__':
    unittest.main(verbosity=2)
