"""Tests for lib/systemd_service.py: webhook unit generation and service creation."""

from __future__ import annotations

import os
import subprocess
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lib.errors import HookError
from lib.systemd_service import (
    create_service,
    generate_webhook_service,
    get_service_file,
)


def _completed(returncode=0):
    return subprocess.CompletedProcess(args='', returncode=returncode, stdout='', stderr='')


class TestGenerateWebhookService(unittest.TestCase):
    def setUp(self):
        self.content = generate_webhook_service(
            'GitHub Webhook Listener for mysite.com',
            '/usr/local/bin/webhook',
            '/etc/webhook/hooks.json',
            9001,
        )

    def test_contains_sections(self):
        self.assertIn('[Unit]', self.content)
        self.assertIn('[Service]', self.content)
        self.assertIn('[Install]', self.content)

    def test_description(self):
        self.assertIn('Description=GitHub Webhook Listener for mysite.com', self.content)

    def test_exec_start_binds_loopback(self):
        self.assertIn(
            'ExecStart=/usr/local/bin/webhook -hooks /etc/webhook/hooks.json -ip 127.0.0.1 -port 9001 -verbose',
            self.content,
        )

    def test_default_user(self):
        self.assertIn('User=www-data', self.content)
        self.assertIn('Group=www-data', self.content)

    def test_custom_user(self):
        content = generate_webhook_service('d', '/usr/bin/webhook', '/h.json', 9001, user='deploy', group='deploy')
        self.assertIn('User=deploy', content)

    def test_restart_policy(self):
        self.assertIn('Restart=always', self.content)
        self.assertIn('RestartSec=10', self.content)

    def test_enabled_at_boot(self):
        self.assertIn('WantedBy=multi-user.target', self.content)


class TestGetServiceFile(unittest.TestCase):
    def test_path(self):
        self.assertEqual(get_service_file('webhook-mysite'), '/etc/systemd/system/webhook-mysite.service')


@patch('lib.systemd_service.time.sleep')
@patch('lib.systemd_service.read_file', return_value=None)
@patch('lib.systemd_service.write_file')
class TestCreateService(unittest.TestCase):
    @patch('lib.systemd_service.run', return_value=_completed())
    def test_reload_enable_restart(self, mock_run, mock_write, _mock_read, _mock_sleep):
        create_service('webhook-mysite', '[Unit]\n')
        mock_write.assert_called_once_with('/etc/systemd/system/webhook-mysite.service', '[Unit]\n', mode=0o644)
        commands = [c.args[0] for c in mock_run.call_args_list]
        self.assertEqual(commands[:3], [
            'systemctl daemon-reload',
            'systemctl enable webhook-mysite',
            'systemctl restart webhook-mysite',
        ])
        self.assertEqual(commands[3], 'systemctl is-active webhook-mysite')

    @patch('lib.systemd_service.run')
    def test_restart_failure_raises(self, mock_run, _mock_write, _mock_read, _mock_sleep):
        mock_run.side_effect = lambda cmd, **kwargs: _completed(1 if 'restart' in cmd else 0)
        with self.assertRaises(HookError) as ctx:
            create_service('webhook-mysite', '[Unit]\n')
        self.assertEqual(ctx.exception.remediation, 'systemctl status webhook-mysite')

    @patch('lib.systemd_service.run', return_value=_completed())
    def test_permission_error(self, _mock_run, mock_write, _mock_read, _mock_sleep):
        mock_write.side_effect = PermissionError('denied')
        with self.assertRaises(HookError):
            create_service('webhook-mysite', '[Unit]\n')

    @patch('lib.systemd_service.run')
    def test_inactive_after_start_returns_false(self, mock_run, _mock_write, _mock_read, _mock_sleep):
        mock_run.side_effect = lambda cmd, **kwargs: _completed(3 if 'is-active' in cmd else 0)
        self.assertFalse(create_service('webhook-mysite', '[Unit]\n'))

    @patch('lib.systemd_service.run', return_value=_completed())
    def test_active_after_start_returns_true(self, _mock_run, _mock_write, _mock_read, _mock_sleep):
        self.assertTrue(create_service('webhook-mysite', '[Unit]\n'))


if __name__ == '__main__':
    unittest.main()
