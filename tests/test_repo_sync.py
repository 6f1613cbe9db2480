"""Tests for shared/repo_sync.py: clone, fast-forward and refusal to overwrite."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lib.errors import SyncError
from lib.system_utils import set_dry_run
from shared.repo_sync import (
    SyncResult,
    get_head_commit,
    is_working_copy,
    normalize_ownership,
    sync,
)


def _git(*args, cwd=None):
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def _commit(repo, filename, content, message):
    with open(os.path.join(repo, filename), 'w') as f:
        f.write(content)
    _git("add", filename, cwd=repo)
    _git("commit", "-q", "-m", message, cwd=repo)
    return _git("rev-parse", "HEAD", cwd=repo)


@unittest.skipUnless(shutil.which("git"), "git not installed")
class RepoSyncTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name
        self.origin = os.path.join(self.tmpdir, 'origin')
        os.makedirs(self.origin)
        _git("init", "-q", cwd=self.origin)
        _git("symbolic-ref", "HEAD", "refs/heads/main", cwd=self.origin)
        self.first_commit = _commit(self.origin, 'index.html', '<h1>v1</h1>\n', 'v1')
        self.webroot = os.path.join(self.tmpdir, 'www', 'mysite.com')

        patcher = patch('shared.repo_sync.normalize_ownership')
        self.mock_normalize = patcher.start()
        self.addCleanup(patcher.stop)
        set_dry_run(False)

    def tearDown(self):
        self._tmp.cleanup()


class TestSyncClone(RepoSyncTestCase):
    def test_clones_missing_webroot(self):
        result = sync(self.origin, self.webroot, 'main')

        self.assertEqual(result, SyncResult(action='cloned', commit=self.first_commit))
        self.assertTrue(is_working_copy(self.webroot))
        self.assertTrue(os.path.exists(os.path.join(self.webroot, 'index.html')))

    def test_clones_into_empty_directory(self):
        os.makedirs(self.webroot)
        result = sync(self.origin, self.webroot, 'main')
        self.assertEqual(result.action, 'cloned')

    def test_normalizes_ownership(self):
        sync(self.origin, self.webroot, 'main', owner='www-data', group='www-data')
        self.mock_normalize.assert_called_once_with(self.webroot, 'www-data', 'www-data', '755', None)

    def test_refuses_non_empty_directory(self):
        os.makedirs(self.webroot)
        with open(os.path.join(self.webroot, 'index.html'), 'w') as f:
            f.write('hand-made page\n')

        with self.assertRaises(SyncError) as ctx:
            sync(self.origin, self.webroot, 'main')

        self.assertIn('not a git working copy', str(ctx.exception))
        with open(os.path.join(self.webroot, 'index.html')) as f:
            self.assertEqual(f.read(), 'hand-made page\n')
        self.mock_normalize.assert_not_called()

    def test_missing_branch_raises(self):
        with self.assertRaises(SyncError) as ctx:
            sync(self.origin, self.webroot, 'does-not-exist')
        self.assertIn('git clone', ctx.exception.remediation)

    def test_unreachable_remote_raises(self):
        with self.assertRaises(SyncError):
            sync(os.path.join(self.tmpdir, 'missing.git'), self.webroot, 'main')


class TestSyncFastForward(RepoSyncTestCase):
    def setUp(self):
        super().setUp()
        sync(self.origin, self.webroot, 'main')
        self.mock_normalize.reset_mock()

    def test_rerun_without_changes(self):
        result = sync(self.origin, self.webroot, 'main')
        self.assertEqual(result, SyncResult(action='updated', commit=self.first_commit))

    def test_pulls_new_commit(self):
        second = _commit(self.origin, 'index.html', '<h1>v2</h1>\n', 'v2')

        result = sync(self.origin, self.webroot, 'main')

        self.assertEqual(result, SyncResult(action='updated', commit=second))
        with open(os.path.join(self.webroot, 'index.html')) as f:
            self.assertEqual(f.read(), '<h1>v2</h1>\n')
        self.mock_normalize.assert_called_once()

    def test_diverged_history_is_left_alone(self):
        _commit(self.origin, 'index.html', '<h1>remote</h1>\n', 'remote change')
        local = _commit(self.webroot, 'about.html', '<h1>local</h1>\n', 'local change')

        with self.assertRaises(SyncError) as ctx:
            sync(self.origin, self.webroot, 'main')

        self.assertEqual(get_head_commit(self.webroot), local)
        self.assertTrue(os.path.exists(os.path.join(self.webroot, 'about.html')))
        self.assertIn('git status', ctx.exception.remediation)
        self.mock_normalize.assert_not_called()


class TestSyncDryRun(RepoSyncTestCase):
    def tearDown(self):
        set_dry_run(False)
        super().tearDown()

    def test_dry_run_touches_nothing(self):
        set_dry_run(True)
        result = sync(self.origin, self.webroot, 'main')
        self.assertEqual(result.action, 'cloned')
        self.assertIsNone(result.commit)
        self.assertFalse(os.path.exists(self.webroot))


class TestNormalizeOwnership(unittest.TestCase):
    def _completed(self, returncode=0):
        return subprocess.CompletedProcess(args='', returncode=returncode, stdout='', stderr='chown: invalid user')

    @patch('shared.repo_sync.run')
    def test_runs_chown_and_chmod(self, mock_run):
        mock_run.return_value = self._completed()
        normalize_ownership('/var/www/mysite.com', 'www-data', 'www-data')
        commands = [c.args[0] for c in mock_run.call_args_list]
        self.assertEqual(commands, [
            'chown -R www-data:www-data /var/www/mysite.com',
            'chmod -R 755 /var/www/mysite.com',
        ])

    @patch('shared.repo_sync.run')
    def test_failure_raises(self, mock_run):
        mock_run.return_value = self._completed(1)
        with self.assertRaises(SyncError) as ctx:
            normalize_ownership('/var/www/mysite.com', 'nobody-here', 'www-data')
        self.assertIn('invalid user', str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
