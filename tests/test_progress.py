"""Tests for lib/progress.py: progress bar rendering."""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lib.progress import progress_bar


class TestProgressBar(unittest.TestCase):
    def test_zero_progress(self):
        self.assertEqual(progress_bar(0, 6), '[' + '░' * 20 + '] 0%')

    def test_full_progress(self):
        self.assertEqual(progress_bar(6, 6), '[' + '█' * 20 + '] 100%')

    def test_half_progress(self):
        bar = progress_bar(3, 6)
        self.assertIn('50%', bar)
        self.assertEqual(bar.count('█'), 10)

    def test_zero_total(self):
        self.assertIn('0%', progress_bar(0, 0))

    def test_custom_width(self):
        bar = progress_bar(5, 10, width=40)
        self.assertEqual(bar.count('█') + bar.count('░'), 40)


if __name__ == '__main__':
    unittest.main()
