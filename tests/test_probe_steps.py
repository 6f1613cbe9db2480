"""Tests for web/probe_steps.py: web server detection and the nginx default."""

from __future__ import annotations

import os
import subprocess
import sys
import unittest
from types import SimpleNamespace
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lib.errors import DetectionError
from lib.types import WebServerKind
from web.probe_steps import detect, detect_web_server


def _completed(returncode=0):
    return subprocess.CompletedProcess(args='', returncode=returncode, stdout='', stderr='')


def _services(*active):
    return lambda name: name in active


class TestWebServerKind(unittest.TestCase):
    def test_from_flags(self):
        self.assertIs(WebServerKind.from_flags(True, False), WebServerKind.NGINX)
        self.assertIs(WebServerKind.from_flags(False, True), WebServerKind.APACHE)
        self.assertIs(WebServerKind.from_flags(True, True), WebServerKind.BOTH)
        self.assertIs(WebServerKind.from_flags(False, False), WebServerKind.NONE)

    def test_active_servers(self):
        self.assertEqual(WebServerKind.BOTH.active_servers(), ['nginx', 'apache2'])
        self.assertEqual(WebServerKind.APACHE.active_servers(), ['apache2'])
        self.assertEqual(WebServerKind.NONE.active_servers(), [])


@patch('web.probe_steps.command_exists', return_value=True)
class TestDetect(unittest.TestCase):
    @patch('web.probe_steps.ensure_package')
    @patch('web.probe_steps.is_service_active', side_effect=_services('nginx'))
    def test_nginx_running(self, _mock_active, mock_ensure, _mock_exists):
        caps = detect()
        self.assertIs(caps.web_server_kind, WebServerKind.NGINX)
        mock_ensure.assert_not_called()

    @patch('web.probe_steps.ensure_package')
    @patch('web.probe_steps.is_service_active', side_effect=_services('apache2'))
    def test_apache_kept(self, _mock_active, mock_ensure, _mock_exists):
        caps = detect()
        self.assertIs(caps.web_server_kind, WebServerKind.APACHE)
        mock_ensure.assert_not_called()

    @patch('web.probe_steps.is_service_active', side_effect=_services('nginx', 'apache2'))
    def test_both_running(self, _mock_active, _mock_exists):
        self.assertIs(detect().web_server_kind, WebServerKind.BOTH)

    @patch('web.probe_steps.run', return_value=_completed())
    @patch('web.probe_steps.ensure_package')
    @patch('web.probe_steps.is_service_active')
    def test_none_installs_nginx(self, mock_active, mock_ensure, mock_run, _mock_exists):
        # Nothing running at first; nginx is active once started
        mock_active.side_effect = [False, False, True]
        caps = detect()
        self.assertIs(caps.web_server_kind, WebServerKind.NGINX)
        mock_ensure.assert_called_once_with('nginx')
        commands = [c.args[0] for c in mock_run.call_args_list]
        self.assertIn('systemctl enable nginx', commands)
        self.assertIn('systemctl start nginx', commands)

    @patch('web.probe_steps.run', return_value=_completed(1))
    @patch('web.probe_steps.ensure_package')
    @patch('web.probe_steps.is_service_active', return_value=False)
    def test_nginx_fails_to_start(self, _mock_active, _mock_ensure, _mock_run, _mock_exists):
        with self.assertRaises(DetectionError) as ctx:
            detect()
        self.assertEqual(ctx.exception.remediation, 'systemctl status nginx')

    @patch('web.probe_steps.is_service_active', side_effect=_services('nginx'))
    def test_tool_flags(self, _mock_active, mock_exists):
        mock_exists.side_effect = lambda name: name in ('git', 'certbot')
        caps = detect()
        self.assertTrue(caps.has_git)
        self.assertTrue(caps.has_cert_tool)
        self.assertFalse(caps.has_webhook_daemon)
        self.assertFalse(caps.has_runtime)

    @patch('web.probe_steps.is_service_active', side_effect=_services('nginx'))
    def test_detect_web_server_sets_context(self, _mock_active, _mock_exists):
        ctx = SimpleNamespace(capabilities=None)
        detect_web_server(ctx)
        self.assertIs(ctx.capabilities.web_server_kind, WebServerKind.NGINX)


if __name__ == '__main__':
    unittest.main()
